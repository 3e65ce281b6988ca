from __future__ import annotations

import logging

from .header import parse_value

logger = logging.getLogger("bfrecipes")


def _as_str(value) -> str:
    return value.decode() if isinstance(value, bytes) else str(value)


def allocated_hosts_key(subarray: str) -> str:
    return f"coordinator:allocated_hosts:{subarray}"


def status_key(hostinst: str, domain: str = "bluse") -> str:
    return f"{domain}://{hostinst}/status"


def header_from_hash(store, key: str) -> dict:
    """
    A GUPPI RAW header built from the HPGUPPI status buffer stored in the redis hash at `key`.
    Values are parsed the same way as header cards.
    """
    return {_as_str(k).strip().upper(): parse_value(_as_str(v)) for k, v in store.hgetall(key).items()}


def header_for_subarray(store, subarray: str, domain: str = "bluse") -> dict:
    """
    The header of the first host/instance allocated to `subarray` that has a status hash, or an
    empty dict if there is none.
    """
    for hostinst in store.lrange(allocated_hosts_key(subarray), 0, -1):
        header = header_from_hash(store, status_key(_as_str(hostinst), domain=domain))
        if header:
            logger.debug(f"Using status of {_as_str(hostinst)} for subarray {subarray}")
            return header
    return {}
