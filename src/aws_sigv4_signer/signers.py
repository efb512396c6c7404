"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

import datetime
import hmac
import logging
import re
from copy import deepcopy
from dataclasses import dataclass
from hashlib import sha256
from typing import Any, Required, TypedDict
from urllib.parse import quote, urlencode

from ._cache import LRUSigningKeyCache
from ._http import PRESIGNED_EXPIRES_HEADER, AWSRequest
from ._identity import AWSCredentialIdentity
from .canonical import Canonicalizer, is_signable_header
from .exceptions import InvalidSigningDateException, MissingExpectedParameterException
from .interfaces.cache import SigningKeyCache
from .interfaces.identity import AWSCredentialsIdentity as _AWSCredentialsIdentity

logger = logging.getLogger(__name__)

SIGV4_ALGORITHM: str = "AWS4-HMAC-SHA256"
SIGV4_TIMESTAMP_FORMAT: str = "%Y%m%dT%H%M%SZ"
# Headers copied into the query string of a presigned request when present.
PRESIGN_PASSTHROUGH_HEADERS: tuple[str, ...] = (
    "Content-Type",
    "Content-MD5",
    "Cache-Control",
)
# Session tokens are masked before canonical requests reach the debug log.
REDACTED = "[REDACTED]"
_SECURITY_TOKEN_HEADER_RE = re.compile(r"^(x-amz-security-token:).*$", re.MULTILINE)
_SECURITY_TOKEN_PARAM_RE = re.compile(
    r"((?:^|&)X-Amz-Security-Token=)[^&\n]*", re.MULTILINE
)


@dataclass(kw_only=True)
class Configuration:
    """Signer-wide settings.

    :param signing_key_cache: Store used to memoize derived signing keys. Each
        signer gets its own :class:`LRUSigningKeyCache` when omitted.
    :param use_signing_key_cache: Whether derived keys are cached at all. Can be
        overridden per call with the ``signing_key_cache`` signing property.
    """

    signing_key_cache: SigningKeyCache | None = None
    use_signing_key_cache: bool = True


class SigV4SigningProperties(TypedDict, total=False):
    service: Required[str]
    region: str
    date: str | datetime.datetime
    operation: str
    signing_key_cache: bool


class SigV4Signer:
    """
    Request signer for applying the AWS Signature Version 4 algorithm.
    """

    def __init__(
        self,
        *,
        config: Configuration | None = None,
        canonicalizer: Canonicalizer | None = None,
    ):
        self._config = config or Configuration()
        self._canonicalizer = canonicalizer or Canonicalizer()
        self._signing_key_cache: SigningKeyCache = (
            self._config.signing_key_cache
            if self._config.signing_key_cache is not None
            else LRUSigningKeyCache()
        )

    @property
    def signing_key_cache(self) -> SigningKeyCache:
        return self._signing_key_cache

    def sign(
        self,
        *,
        signing_properties: SigV4SigningProperties,
        request: AWSRequest,
        identity: AWSCredentialIdentity,
    ) -> AWSRequest:
        """Sign ``request`` in place and return it.

        Requests carrying a ``presigned-expires`` header, or with
        ``presign_expires`` set, get the signing parameters appended to their
        query string. All other requests get ``X-Amz-Date`` and, for temporary
        credentials, ``x-amz-security-token`` headers. Both modes finish by
        setting the ``Authorization`` header.

        The caller's request is only modified once the signature has been
        computed, so a failure leaves it untouched.

        :param signing_properties: SigV4SigningProperties to define signing
            primitives such as the target service, region, and date.
        :param request: An AWSRequest to sign prior to sending to the service.
        :param identity: A set of credentials representing an AWS Identity or
            role capacity.
        """
        # Copy and prepopulate any missing values in the
        # supplied request and signing properties.
        self._validate_identity(identity=identity)
        new_signing_properties = self._normalize_signing_properties(
            signing_properties=signing_properties, request=request
        )
        new_request = self._generate_new_request(request=request)
        logger.debug(
            "Calculating signature using v4 auth. service=%s operation=%s "
            "presigned=%s",
            new_signing_properties["service"],
            new_signing_properties.get("operation"),
            new_request.is_presigned,
        )

        if new_request.is_presigned:
            self._apply_presign_query(
                request=new_request,
                signing_properties=new_signing_properties,
                identity=identity,
            )
        else:
            self._apply_required_fields(
                request=new_request,
                signing_properties=new_signing_properties,
                identity=identity,
            )

        # Construct core signing components
        canonical_request = self.canonical_request(
            signing_properties=new_signing_properties,
            request=new_request,
        )
        string_to_sign = self.string_to_sign(
            canonical_request=canonical_request,
            signing_properties=new_signing_properties,
        )
        signature = self._signature(
            string_to_sign=string_to_sign,
            secret_key=identity.secret_access_key,
            signing_properties=new_signing_properties,
        )

        credential_scope = self._scope(signing_properties=new_signing_properties)
        credential = f"{identity.access_key_id}/{credential_scope}"
        authorization = self.generate_authorization_field(
            credential=credential,
            signed_headers=self._canonicalizer.signed_header_names(
                headers=new_request.headers
            ),
            signature=signature,
        )
        new_request.set_header("Authorization", authorization)

        self._publish(source=new_request, target=request)
        return request

    def generate_authorization_field(
        self, *, credential: str, signed_headers: str, signature: str
    ) -> str:
        """Generate the `Authorization` field value.

        :param credential:
            Credential scope string for generating the Authorization header.
            Defined as:
                <access_key>/<date>/<region>/<service>/aws4_request
        :param signed_headers:
            The ``;`` separated names of the headers used in signing.
        :param signature:
            Final hash of the SigV4 signing algorithm generated from the
            canonical request and string to sign.
        """
        return (
            f"{SIGV4_ALGORITHM} Credential={credential}, "
            f"SignedHeaders={signed_headers}, Signature={signature}"
        )

    def _signature(
        self,
        *,
        string_to_sign: str,
        secret_key: str,
        signing_properties: SigV4SigningProperties,
    ) -> str:
        signing_key = self.derive_signing_key(
            secret_key=secret_key,
            date=self._signing_date(signing_properties=signing_properties)[0:8],
            region=signing_properties["region"],
            service=signing_properties["service"],
            use_cache=signing_properties.get(
                "signing_key_cache", self._config.use_signing_key_cache
            ),
        )
        signature = self._hash(key=signing_key, value=string_to_sign).hex()
        logger.debug("Signature:\n%s", signature)
        return signature

    def derive_signing_key(
        self,
        *,
        secret_key: str,
        date: str,
        region: str,
        service: str,
        use_cache: bool = True,
    ) -> bytes:
        """Derive the signing key scoped to a date, region and service.

        In SigV4, a signing key is created that is scoped to a specific region and
        service. The date, region, service and resulting signing key are individually
        hashed, then the composite hash is used to sign the string to sign.

        DateKey              = HMAC-SHA256("AWS4"+"<SecretAccessKey>", "<YYYYMMDD>")
        DateRegionKey        = HMAC-SHA256(<DateKey>, "<aws-region>")
        DateRegionServiceKey = HMAC-SHA256(<DateRegionKey>, "<aws-service>")
        SigningKey           = HMAC-SHA256(<DateRegionServiceKey>, "aws4_request")

        Keys are cached by a digest of the secret rather than the secret itself.
        """
        cache_key = (sha256(secret_key.encode()).hexdigest(), date, region, service)
        if use_cache:
            cached = self._signing_key_cache.get(cache_key)
            if cached is not None:
                logger.debug(
                    "Using cached signing key for %s/%s/%s", date, region, service
                )
                return cached

        k_date = self._hash(key=f"AWS4{secret_key}".encode(), value=date)
        k_region = self._hash(key=k_date, value=region)
        k_service = self._hash(key=k_region, value=service)
        k_signing = self._hash(key=k_service, value="aws4_request")

        if use_cache:
            logger.debug(
                "Caching derived signing key for %s/%s/%s", date, region, service
            )
            self._signing_key_cache.set(cache_key, k_signing)
        return k_signing

    def _hash(self, key: bytes, value: str) -> bytes:
        return hmac.new(key=key, msg=value.encode(), digestmod=sha256).digest()

    def _validate_identity(self, *, identity: AWSCredentialIdentity) -> None:
        """Perform runtime and expiration checks before attempting signing."""
        if not isinstance(identity, _AWSCredentialsIdentity):
            raise ValueError(
                "Received unexpected value for identity parameter. Expected "
                f"AWSCredentialIdentity but received {type(identity)}."
            )
        elif identity.is_expired:
            raise ValueError(
                f"Provided identity expired at {identity.expiration}. Please "
                "refresh the credentials or update the expiration parameter."
            )

    def _normalize_signing_properties(
        self, *, signing_properties: SigV4SigningProperties, request: AWSRequest
    ) -> SigV4SigningProperties:
        # Create copy of signing properties to avoid mutating the original
        new_signing_properties = SigV4SigningProperties(**signing_properties)

        if not new_signing_properties.get("service"):
            raise MissingExpectedParameterException(
                "A service name is required in signing_properties to sign a request."
            )
        region = new_signing_properties.get("region") or request.region
        if not region:
            raise MissingExpectedParameterException(
                "A region is required to sign a request. Set it in "
                "signing_properties or on the AWSRequest."
            )
        new_signing_properties["region"] = region
        new_signing_properties["date"] = self._resolve_signing_date(
            date=new_signing_properties.get("date")
        )
        return new_signing_properties

    def _generate_new_request(self, *, request: AWSRequest) -> AWSRequest:
        return deepcopy(request)

    def _publish(self, *, source: AWSRequest, target: AWSRequest) -> None:
        target.headers.clear()
        target.headers.update(source.headers)
        target.query = source.query

    def _resolve_signing_date(self, *, date: Any) -> str:
        if date is None:
            date = datetime.datetime.now(datetime.UTC)
        if isinstance(date, datetime.datetime):
            if date.tzinfo is not None:
                date = date.astimezone(datetime.UTC)
            return date.strftime(SIGV4_TIMESTAMP_FORMAT)
        if isinstance(date, str):
            try:
                datetime.datetime.strptime(date, SIGV4_TIMESTAMP_FORMAT)
            except ValueError as e:
                raise InvalidSigningDateException(
                    f"Signing date {date!r} does not match the "
                    f"{SIGV4_TIMESTAMP_FORMAT} format."
                ) from e
            return date
        raise InvalidSigningDateException(
            "Expected a datetime or a formatted string for the signing date, "
            f"received {type(date)}."
        )

    def _signing_date(self, *, signing_properties: SigV4SigningProperties) -> str:
        date = signing_properties.get("date")
        if not isinstance(date, str):
            raise MissingExpectedParameterException(
                "Cannot sign without a resolved date in your signing_properties. "
                f"Current value: {date}"
            )
        return date

    def _apply_required_fields(
        self,
        *,
        request: AWSRequest,
        signing_properties: SigV4SigningProperties,
        identity: AWSCredentialIdentity,
    ) -> None:
        request.set_header(
            "X-Amz-Date", self._signing_date(signing_properties=signing_properties)
        )
        if identity.session_token:
            request.set_header("x-amz-security-token", identity.session_token)

    def _apply_presign_query(
        self,
        *,
        request: AWSRequest,
        signing_properties: SigV4SigningProperties,
        identity: AWSCredentialIdentity,
    ) -> None:
        scope = self._scope(signing_properties=signing_properties)
        params: dict[str, Any] = {
            "X-Amz-Date": self._signing_date(signing_properties=signing_properties),
            "X-Amz-Algorithm": SIGV4_ALGORITHM,
            "X-Amz-Credential": f"{identity.access_key_id}/{scope}",
            "X-Amz-Expires": self._resolve_expires(request=request),
            "X-Amz-SignedHeaders": self._canonicalizer.signed_header_names(
                headers=request.headers
            ),
        }
        if identity.session_token:
            params["X-Amz-Security-Token"] = identity.session_token

        for name in PRESIGN_PASSTHROUGH_HEADERS:
            value = request.get_header(name)
            if value:
                params[name] = value

        # Any other x-amz-* headers travel in the query string as well.
        for name, value in request.headers.items():
            if name == PRESIGNED_EXPIRES_HEADER or not is_signable_header(name):
                continue
            lowered = name.lower()
            # Metadata names are normalized to lowercase.
            if lowered.startswith("x-amz-meta-"):
                params[lowered] = value
            elif lowered.startswith("x-amz-"):
                params[name] = value

        # Sorted so the appended parameters are already in canonical order.
        request.append_query(urlencode(sorted(params.items()), quote_via=quote))

    def _resolve_expires(self, *, request: AWSRequest) -> str:
        expires = request.presign_expires
        if expires is None:
            expires = request.headers.get(PRESIGNED_EXPIRES_HEADER)
        try:
            seconds = int(str(expires).strip())
        except ValueError:
            seconds = 0
        if seconds <= 0:
            raise MissingExpectedParameterException(
                "Presigned requests need a positive number of seconds until "
                f"expiry. Current value: {expires!r}"
            )
        return str(seconds)

    def canonical_request(
        self, *, signing_properties: SigV4SigningProperties, request: AWSRequest
    ) -> str:
        """The canonical request is a standardized string laying out the components
        used in the SigV4 signing algorithm. This is useful to quickly compare inputs
        to find signature mismatches and unintended variances.

        :param signing_properties:
            SigV4SigningProperties to define signing primitives such as
            the target service, region, and date.
        :param request:
            An AWSRequest to use for generating a SigV4 signature.
        """
        canonical_request = self._canonicalizer.canonical_request(
            request=request,
            service=signing_properties["service"],
            presigned=request.is_presigned,
        )
        logger.debug(
            "CanonicalRequest:\n%s", _redact_session_token(canonical_request)
        )
        return canonical_request

    def string_to_sign(
        self,
        *,
        canonical_request: str,
        signing_properties: SigV4SigningProperties,
    ) -> str:
        """The string to sign concatenates the formal identifier of our signing
        algorithm, the signing DateTime, the scope of our credentials, and a hash of
        the canonical request.

        The SigV4 specification defines the string to sign as:
            Algorithm \\n
            RequestDateTime \\n
            CredentialScope  \\n
            HashedCanonicalRequest
        """
        date = self._signing_date(signing_properties=signing_properties)
        string_to_sign = (
            f"{SIGV4_ALGORITHM}\n"
            f"{date}\n"
            f"{self._scope(signing_properties=signing_properties)}\n"
            f"{sha256(canonical_request.encode()).hexdigest()}"
        )
        logger.debug("StringToSign:\n%s", string_to_sign)
        return string_to_sign

    def _scope(self, signing_properties: SigV4SigningProperties) -> str:
        return credential_scope(
            date=self._signing_date(signing_properties=signing_properties)[0:8],
            region=signing_properties["region"],
            service=signing_properties["service"],
        )


class AsyncSigV4Signer:
    """Coroutine front-end to :class:`SigV4Signer` for asyncio callers.

    Signing never blocks on I/O, so the work runs inline on the event loop.
    """

    def __init__(self, *, config: Configuration | None = None):
        self._signer = SigV4Signer(config=config)

    @property
    def signing_key_cache(self) -> SigningKeyCache:
        return self._signer.signing_key_cache

    async def sign(
        self,
        *,
        signing_properties: SigV4SigningProperties,
        request: AWSRequest,
        identity: AWSCredentialIdentity,
    ) -> AWSRequest:
        return self._signer.sign(
            signing_properties=signing_properties,
            request=request,
            identity=identity,
        )


def credential_scope(*, date: str, region: str, service: str) -> str:
    # Scope format: <YYYYMMDD>/<AWS Region>/<AWS Service>/aws4_request
    return f"{date}/{region}/{service}/aws4_request"


def _redact_session_token(canonical_request: str) -> str:
    redacted = _SECURITY_TOKEN_HEADER_RE.sub(rf"\g<1>{REDACTED}", canonical_request)
    return _SECURITY_TOKEN_PARAM_RE.sub(rf"\g<1>{REDACTED}", redacted)
