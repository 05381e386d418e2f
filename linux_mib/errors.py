"""Exceptions raised by the MIB data provider."""


class MibDataError(Exception):
    """Base class for all provider errors."""


class FormatError(MibDataError):
    """A kernel file did not have the structure we expect."""


class StateMappingError(FormatError):
    """A kernel TCP state code has no MIB equivalent."""

    def __init__(self, code: int) -> None:
        super().__init__(f"Unknown kernel TCP state code {code}")
        self.code = code


class NotFoundError(MibDataError, KeyError):
    """An interface (or address) could not be resolved."""

    def __init__(self, name: str, kind: str = "Interface") -> None:
        super().__init__(f"{kind} {name} does not exist")
        self.name = name

    def __str__(self) -> str:
        return str(self.args[0])


class UnknownObjectError(MibDataError, KeyError):
    """No accessor is registered for the requested MIB object name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"No accessor for MIB object {name}")
        self.name = name

    def __str__(self) -> str:
        return str(self.args[0])


class NotWritableError(MibDataError):
    """A set was attempted on an object that is not writable."""

    def __init__(self, name: str) -> None:
        super().__init__(f"MIB object {name} is not writable")
        self.name = name
