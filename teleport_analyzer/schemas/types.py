"""
Shared type definitions for schemas.

Centralizes the base models used across the sessions API schemas.

Layering:
- BaseStrictModel: values this package builds itself (query parameters, summaries, exports)
- PermissiveModel: typed fallbacks that must accept any unknown structure
- WireModel: records decoded from the sessions API (typed fields, unknown fields retained)
"""

from __future__ import annotations

from datetime import UTC, datetime

import pydantic

# ==============================================================================
# Base Strict Model (Foundation)
# ==============================================================================


class BaseStrictModel(pydantic.BaseModel):
    """
    Foundation strict model for values owned by this package.

    Uses extra='forbid' to reject unknown fields - any field not modeled
    causes immediate validation failure (fail-fast).
    """

    model_config = pydantic.ConfigDict(
        extra='forbid',  # Reject unknown fields (fail-fast)
        strict=True,  # Strict type coercion
        frozen=True,  # Immutable after creation
    )


# ==============================================================================
# Permissive Model (Foundation)
# ==============================================================================


class PermissiveModel(pydantic.BaseModel):
    """
    Foundation permissive model for typed fallbacks in unions.

    Symmetry with BaseStrictModel:
    - BaseStrictModel: extra='forbid' (rejects unknown fields)
    - PermissiveModel: extra='allow' (accepts unknown fields)

    Use as the LAST type in typed unions to catch unknown structures:

        ContentBlock = Annotated[
            Annotated[TextBlock, pydantic.Tag('text')] | Annotated[OtherBlock, pydantic.Tag('other')],
            pydantic.Discriminator(_content_block_tag),
        ]

        class OtherBlock(PermissiveModel):
            type: str

    Detection: isinstance(x, PermissiveModel) catches all fallback usages.
    """

    model_config = pydantic.ConfigDict(
        extra='allow',  # Accept unknown fields (graceful fallback)
        strict=True,  # Strict type coercion for known fields
        frozen=True,  # Immutable after creation
    )

    def get_extra_fields(self) -> dict[str, object]:
        """Get extra fields captured by this permissive model.

        Returns only the unknown fields, not defined model fields.
        """
        return dict(self.__pydantic_extra__) if self.__pydantic_extra__ else {}


# ==============================================================================
# Wire Model (API records)
# ==============================================================================


class WireModel(PermissiveModel):
    """
    Base for records decoded from the sessions API.

    Modeled fields are validated strictly: a modeled field with the wrong type,
    or a missing required field, is a contract violation and fails validation.
    Fields the API adds later are kept in __pydantic_extra__ so that
    model_dump(mode='json', exclude_unset=True) reproduces the original record.
    """


# ==============================================================================
# Timestamps
# ==============================================================================


def parse_timestamp(value: str | None) -> datetime | None:
    """
    Parse an ISO-8601 timestamp from the API into an aware UTC datetime.

    Naive timestamps are assumed to be UTC. Returns None for missing or
    unparseable values - display and ordering treat those as "no timestamp".
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)
