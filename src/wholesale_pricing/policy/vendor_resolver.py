"""
Vendor Resolver - Authenticates a request to a vendor record.

Bearer token claims are read WITHOUT signature verification. Token contents
are trusted as-is; swapping ``UnverifiedClaimsExtractor`` for a verifying
extractor changes which requests authenticate.
"""
import base64
import binascii
import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ..engine.models import Vendor
from ..store.base import WholesaleStore

logger = logging.getLogger(__name__)

_BEARER = re.compile(r'^Bearer\s+(.+)$', re.IGNORECASE)


@dataclass
class TokenClaims:
    sub: Optional[str] = None
    email: Optional[str] = None


class ClaimsExtractor(ABC):
    """Extracts identity claims from a raw ``Authorization`` header."""

    @abstractmethod
    def extract(self, authorization: Optional[str]) -> Optional[TokenClaims]:
        ...


class UnverifiedClaimsExtractor(ClaimsExtractor):
    """Decodes the payload segment of a bearer token. No cryptographic check."""

    def extract(self, authorization):
        if not authorization:
            return None
        match = _BEARER.match(authorization.strip())
        if not match:
            return None
        parts = match.group(1).strip().split('.')
        if len(parts) < 2:
            return None
        try:
            payload = json.loads(_b64decode(parts[1]))
        except (binascii.Error, ValueError):
            logger.debug("Ignoring undecodable bearer token payload")
            return None
        if not isinstance(payload, dict):
            return None
        sub = payload.get('sub')
        email = payload.get('email')
        return TokenClaims(
            sub=sub if isinstance(sub, str) else None,
            email=email if isinstance(email, str) else None,
        )


def _b64decode(segment: str) -> str:
    # Token segments are usually unpadded base64url
    padded = segment + '=' * (-len(segment) % 4)
    return base64.urlsafe_b64decode(padded).decode('utf-8')


def normalize_email(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return str(value).strip().lower() or None


class VendorResolver:
    """
    Resolves the calling vendor from explicit arguments and/or a bearer token.

    Explicit ``vendor_id``/``vendor_email`` take precedence over token claims.
    Returns None when no vendor matches or the match has portal access
    disabled. Store failures propagate as ``StoreError``.
    """

    def __init__(
        self,
        store: WholesaleStore,
        claims_extractor: Optional[ClaimsExtractor] = None,
        draft_prefix: str = 'drafts.',
    ):
        self.store = store
        self.claims_extractor = claims_extractor or UnverifiedClaimsExtractor()
        self.draft_prefix = draft_prefix

    def normalize_id(self, vendor_id: Optional[str]) -> str:
        vendor_id = (vendor_id or '').strip()
        if self.draft_prefix and vendor_id.startswith(self.draft_prefix):
            vendor_id = vendor_id[len(self.draft_prefix):]
        return vendor_id

    async def resolve(
        self,
        vendor_id: Optional[str] = None,
        vendor_email: Optional[str] = None,
        authorization: Optional[str] = None,
    ) -> Optional[Vendor]:
        claims = self.claims_extractor.extract(authorization) or TokenClaims()
        email = normalize_email(vendor_email or claims.email)
        normalized_id = self.normalize_id(vendor_id or claims.sub)

        if not normalized_id and not email:
            return None

        doc = await self.store.find_vendor(normalized_id or None, email)
        if doc is None:
            return None

        vendor = Vendor.from_document(doc)
        if not vendor.portal_enabled:
            logger.info("Vendor %s matched but portal access is disabled", vendor.id)
            return None
        return vendor
