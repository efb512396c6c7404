"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0

AWS SigV4 Signer provides stand-alone Signature Version 4 request signing,
in header or presigned query form, for use with HTTP tools such as AioHTTP,
Curl, Requests, urllib3, etc.
"""

from __future__ import annotations

from ._cache import LRUSigningKeyCache
from ._http import AWSRequest
from ._identity import AWSCredentialIdentity
from ._version import __version__
from .canonical import Canonicalizer
from .signers import (
    AsyncSigV4Signer,
    Configuration,
    SigV4Signer,
    SigV4SigningProperties,
)

__license__ = "Apache-2.0"
__version__ = __version__

__all__ = (
    "AWSCredentialIdentity",
    "AWSRequest",
    "AsyncSigV4Signer",
    "Canonicalizer",
    "Configuration",
    "LRUSigningKeyCache",
    "SigV4Signer",
    "SigV4SigningProperties",
)
