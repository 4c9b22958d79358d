"""Subgraph identifier classification.

A subgraph can be referred either by a deployment ID or by a human-readable name:

* Deployment ID is an IPFS CIDv0 of the subgraph manifest (`Qm...`, 46 chars of base58) or the same
  hash in hex form (`0x` + 64 hex digits).
* Name is one or more `/`-separated segments, e.g. `uniswap/uniswap-v3`.
"""

import re

MAX_NAME_LENGTH = 255

DEPLOYMENT_ID_REGEX = re.compile(r'Qm[1-9A-HJ-NP-Za-km-z]{44}')
DEPLOYMENT_HASH_REGEX = re.compile(r'0x[0-9a-fA-F]{64}')
NAME_SEGMENT_REGEX = re.compile(r'[A-Za-z0-9_-]+')


def is_valid_id(value: str) -> bool:
    """Whether value is a subgraph deployment ID"""
    return bool(DEPLOYMENT_ID_REGEX.fullmatch(value) or DEPLOYMENT_HASH_REGEX.fullmatch(value))


def is_valid_name(value: str) -> bool:
    """Whether value is a subgraph name"""
    if not value or len(value) > MAX_NAME_LENGTH:
        return False
    if value[0] in '-/' or value[-1] in '-/':
        return False
    return all(NAME_SEGMENT_REGEX.fullmatch(segment) for segment in value.split('/'))
