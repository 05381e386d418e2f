"""
SNMP responder for provider-backed objects.

This module answers GET and GETNEXT for every object the provider serves by
evaluating the relevant accessor at request time and encoding the result as a
pysnmp rfc1902 value. Tables are walked by column then by instance index, so
a sequence of GETNEXT requests visits the subtree in lexicographic order.
"""

import bisect
import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from pysnmp.proto import rfc1902

from linux_mib.errors import MibDataError, NotFoundError
from linux_mib.mib_objects import (
    COUNTER32,
    GAUGE32,
    INTEGER32,
    IP_ADDRESS,
    OBJECT_IDENTIFIER,
    OCTET_STRING,
    SCALARS,
    TABLES,
    TIME_TICKS,
    ScalarObject,
    TableObject,
)
from linux_mib.mib_provider import LinuxMibProvider

logger = logging.getLogger(__name__)

Oid = Tuple[int, ...]
MibObject = Union[ScalarObject, TableObject]

_SYNTAX_CLASSES = {
    INTEGER32: rfc1902.Integer32,
    OCTET_STRING: rfc1902.OctetString,
    OBJECT_IDENTIFIER: rfc1902.ObjectIdentifier,
    IP_ADDRESS: rfc1902.IpAddress,
    COUNTER32: rfc1902.Counter32,
    GAUGE32: rfc1902.Gauge32,
    TIME_TICKS: rfc1902.TimeTicks,
}

# Failures reading an object's current value. GET and GETNEXT raise them so
# the engine can answer genErr; a walk logs them and moves on.
READ_ERRORS = (MibDataError, OSError, TimeoutError, ValueError)


def encode_value(syntax: str, value: Any) -> Any:
    """Wrap a plain provider value in the pysnmp type for syntax."""
    cls = _SYNTAX_CLASSES[syntax]
    if syntax in (INTEGER32, COUNTER32, GAUGE32, TIME_TICKS):
        return cls(int(value))
    return cls(value)


class SNMPResponder:
    """
    Handles SNMP GET and GETNEXT against a LinuxMibProvider.

    Only the object that owns the requested OID is evaluated for a GET; a
    GETNEXT evaluates objects in OID order until one yields an instance
    after the requested OID.
    """

    def __init__(self, provider: LinuxMibProvider) -> None:
        """
        Args:
            provider: Source of every scalar value and table row
        """
        self.provider = provider
        served = set(provider.names())
        objects: List[MibObject] = [obj for obj in SCALARS + TABLES if obj.name in served]
        # Subtree root of each object, in lexicographic order
        self._objects: List[Tuple[Oid, MibObject]] = sorted(
            ((self._root(obj), obj) for obj in objects), key=lambda item: item[0]
        )
        logger.debug(f"Responding for {len(self._objects)} MIB objects")

    @staticmethod
    def _root(obj: MibObject) -> Oid:
        if isinstance(obj, TableObject):
            return obj.entry_oid
        return obj.oid

    def find_object(self, oid: Oid) -> Optional[MibObject]:
        """Return the object whose subtree contains oid, if any."""
        for root, obj in self._objects:
            if oid[: len(root)] == root:
                return obj
        return None

    async def _instances(self, obj: MibObject, skip_errors: bool = False) -> List[Tuple[Oid, Any]]:
        """Every (instance OID, encoded value) of one object, sorted.

        Raises:
            MibDataError, OSError, TimeoutError, ValueError: The object could
                not be read and skip_errors is False
        """
        try:
            value = await self.provider.get(obj.name)
        except NotFoundError:
            return []
        except READ_ERRORS as e:
            if not skip_errors:
                raise
            logger.warning(f"Skipping {obj.name}: {e}")
            return []

        if isinstance(obj, ScalarObject):
            return [(obj.oid + (0,), encode_value(obj.syntax, value))]

        instances: Dict[Oid, Any] = {}
        for row in value:
            index = obj.index(row)
            for column in obj.columns:
                oid = obj.entry_oid + (column.sub_id,) + index
                # Duplicate indexes (e.g. two routes to one destination): first row wins
                if oid not in instances:
                    instances[oid] = encode_value(column.syntax, getattr(row, column.attribute))
        return sorted(instances.items(), key=lambda item: item[0])

    async def handle_get_request(self, oid: Oid) -> Optional[Any]:
        """Handle SNMP GET request for an OID; None means no such instance.

        Raises:
            MibDataError, OSError, TimeoutError, ValueError: The owning object
                could not be read
        """
        oid = tuple(oid)
        obj = self.find_object(oid)
        if obj is None:
            return None
        for instance_oid, value in await self._instances(obj):
            if instance_oid == oid:
                return value
        return None

    async def handle_getnext_request(self, oid: Oid) -> Optional[Tuple[Oid, Any]]:
        """Handle SNMP GETNEXT request; None means end of the served view.

        Raises:
            MibDataError, OSError, TimeoutError, ValueError: The next object
                in OID order could not be read
        """
        oid = tuple(oid)
        for root, obj in self._objects:
            # Skip subtrees that lie entirely before the requested OID
            if root < oid and oid[: len(root)] != root:
                continue
            instances = await self._instances(obj)
            position = bisect.bisect_right([i for i, _ in instances], oid)
            if position < len(instances):
                return instances[position]
        return None

    async def walk(self, oid: Oid = (1, 3, 6, 1, 2, 1)) -> List[Tuple[Oid, Any]]:
        """Every instance under oid, as repeated GETNEXT would return them.

        Each object is evaluated once, so rows are mutually consistent. An
        object that cannot be read is logged and left out of the walk.
        """
        prefix = tuple(oid)
        results: List[Tuple[Oid, Any]] = []
        for root, obj in self._objects:
            if root[: len(prefix)] != prefix and prefix[: len(root)] != root:
                continue
            results.extend(
                (instance_oid, value)
                for instance_oid, value in await self._instances(obj, skip_errors=True)
                if instance_oid[: len(prefix)] == prefix
            )
        return results
