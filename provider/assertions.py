import logging

import jwt

from provider.errors import InvalidGrantError
from provider.models import Issuer

logger = logging.getLogger(__name__)

JWT_BEARER = "urn:ietf:params:oauth:grant-type:jwt-bearer"

# Issuers' clocks may be off from ours by this much
CLOCK_SKEW_SECONDS = 600

REQUIRED_CLAIMS = ["iss", "prn", "aud", "exp"]


def verify_jwt_bearer(assertion: str, audience: str | None = None) -> str:
    """
    Verifies a JWT assertion signed by a registered Issuer and returns its
    principal (the "prn" claim), which becomes the token's identity.

    HS* assertions are checked against the issuer's HMAC secret, RS* ones
    against its RSA public key. Raises InvalidGrantError on any problem.
    """
    try:
        header = jwt.get_unverified_header(assertion)
        unverified = jwt.decode(assertion, options={"verify_signature": False})
    except jwt.PyJWTError as error:
        logger.info("Malformed JWT assertion: %s", error)
        raise InvalidGrantError("The assertion is not a valid JWT.")

    issuer = Issuer.from_identifier(unverified.get("iss"))
    if issuer is None:
        raise InvalidGrantError("The assertion issuer is not registered.")

    algorithm = header.get("alg") or ""
    if algorithm.startswith("HS"):
        key = issuer.hmac_secret
    elif algorithm.startswith("RS"):
        key = issuer.public_key
    else:
        raise InvalidGrantError(f"Unsupported assertion algorithm '{algorithm}'.")
    if not key:
        raise InvalidGrantError(
            f"Issuer {issuer.identifier} has no key for algorithm '{algorithm}'."
        )

    try:
        claims = jwt.decode(
            assertion,
            key,
            algorithms=[algorithm],
            audience=audience,
            leeway=CLOCK_SKEW_SECONDS,
            options={
                "require": REQUIRED_CLAIMS,
                "verify_aud": audience is not None,
            },
        )
    except jwt.PyJWTError as error:
        logger.info(
            "Rejected assertion from issuer %s: %s", issuer.identifier, error
        )
        raise InvalidGrantError(f"The assertion is not valid: {error}")
    return str(claims["prn"])
