"""Reconciliation policy loaded from the environment."""

from __future__ import annotations

from typing import Final

from catalogix.domain.errors import InputValidationError
from catalogix.domain.model import parse_rule
from catalogix.domain.policy import (
    DEFAULT_SUPPLIER_PRIORITY,
    MANUAL_OVERRIDE_PRIORITY,
    CatalogPolicy,
    MatchingPolicy,
    PricePolicy,
    ResolutionPolicy,
)

from .env import env_bool, env_float, env_int, env_int_mapping, env_list, env_str
from .errors import ConfigurationError

DEFAULT_SUPPLIER_PRIORITIES: Final[dict[str, int]] = {"master": 100}


def get_catalog_policy() -> CatalogPolicy:
    """Build the policy from ``CATALOGIX_*`` variables, falling back to the defaults."""

    defaults_pricing = PricePolicy()
    defaults_matching = MatchingPolicy()

    rule_text = env_str("CATALOGIX_PREFERRED_SOURCE", "priority")
    try:
        preferred_source = parse_rule(rule_text)
    except InputValidationError as exc:
        raise ConfigurationError(f"CATALOGIX_PREFERRED_SOURCE: {exc}") from exc

    threshold = env_float("CATALOGIX_SIMILARITY_THRESHOLD", defaults_matching.similarity_threshold)
    if not 0.0 <= threshold <= 100.0:  # noqa: PLR2004
        raise ConfigurationError(
            f"CATALOGIX_SIMILARITY_THRESHOLD must be within [0, 100], got {threshold}"
        )

    currency = env_str("CATALOGIX_CURRENCY", defaults_pricing.currency).upper()
    if len(currency) != 3:  # noqa: PLR2004
        raise ConfigurationError(f"CATALOGIX_CURRENCY must be a 3-letter code, got {currency!r}")

    return CatalogPolicy(
        resolution=ResolutionPolicy(
            default_priority=env_int("CATALOGIX_DEFAULT_PRIORITY", DEFAULT_SUPPLIER_PRIORITY),
            manual_priority=env_int("CATALOGIX_MANUAL_PRIORITY", MANUAL_OVERRIDE_PRIORITY),
            supplier_priorities=env_int_mapping("CATALOGIX_SUPPLIER_PRIORITIES")
            or dict(DEFAULT_SUPPLIER_PRIORITIES),
            preferred_source=preferred_source,
        ),
        pricing=PricePolicy(
            retail_keywords=tuple(
                keyword.casefold()
                for keyword in env_list(
                    "CATALOGIX_RETAIL_PRICE_TAGS", defaults_pricing.retail_keywords
                )
            ),
            purchase_keywords=tuple(
                keyword.casefold()
                for keyword in env_list(
                    "CATALOGIX_PURCHASE_PRICE_TAGS", defaults_pricing.purchase_keywords
                )
            ),
            currency=currency,
        ),
        matching=MatchingPolicy(
            similarity_threshold=threshold,
            create_missing_entries=env_bool(
                "CATALOGIX_CREATE_MISSING_ENTRIES", defaults_matching.create_missing_entries
            ),
            sku_prefix=env_str("CATALOGIX_SKU_PREFIX", defaults_matching.sku_prefix),
        ),
    )
