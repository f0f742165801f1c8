import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from crm_overlay.core.cache import CacheService
from crm_overlay.core.config import settings
from crm_overlay.core.constants import (
    PRIORITY_SCORING_KEY,
    RISK_RULES_KEY,
    TIER_PRIORITY_ORDER,
)
from crm_overlay.core.default_config import DEFAULT_PRIORITY_SCORING, DEFAULT_RISK_RULES
from crm_overlay.core.exceptions import ConfigStoreUnavailableError
from crm_overlay.repositories.config_repository import ConfigRepository
from crm_overlay.schemas.config import AppConfig, ConfigImport, LastModified
from crm_overlay.schemas.priority import (
    PriorityComponent,
    PriorityScoringConfig,
    RoleConfig,
    ScoreRange,
    TierRange,
    TierThresholds,
)
from crm_overlay.schemas.risk_rule import RiskRule
from crm_overlay.services.config_validation import (
    validate_priority_scoring,
    validate_risk_rules,
)

logger = logging.getLogger(__name__)

_CACHE_PREFIX = "crm_overlay:config:"

_DEFAULTS: Dict[str, Any] = {
    RISK_RULES_KEY: DEFAULT_RISK_RULES,
    PRIORITY_SCORING_KEY: DEFAULT_PRIORITY_SCORING,
}


@dataclass(frozen=True)
class ConfigSnapshot:
    """Both configuration documents as read at one point in time.

    A batch run takes one snapshot and scores every record against it,
    so an admin edit in the middle of the run cannot split the batch
    across two configurations.
    """

    risk_rules: List[RiskRule] = field(default_factory=list)
    priority_scoring: PriorityScoringConfig = field(
        default_factory=PriorityScoringConfig
    )


def parse_risk_rules(value: Any) -> List[RiskRule]:
    """Parse a stored risk-rules document, skipping unreadable rules.

    Conditions are read as stored; one with an unknown operator keeps
    its rule and simply never holds.
    """
    if not isinstance(value, list):
        logger.warning("Stored risk rules are not a list; ignoring them")
        return []

    rules = []
    for position, item in enumerate(value):
        try:
            rules.append(RiskRule.model_validate(item))
        except ValidationError as exc:
            rule_id = item.get("id") if isinstance(item, dict) else None
            logger.warning(
                "Skipping unreadable risk rule #%d (%s): %s",
                position,
                rule_id or "no id",
                exc.errors(include_url=False),
            )
    return rules


def _lookup(document: Mapping[str, Any], alias: str, name: str) -> Any:
    return document[alias] if alias in document else document.get(name)


def _parse_score_ranges(component_id: Any, ranges: Any) -> Any:
    if not isinstance(ranges, list):
        return ranges
    kept = []
    for position, item in enumerate(ranges):
        try:
            kept.append(ScoreRange.model_validate(item))
        except ValidationError as exc:
            logger.warning(
                "Skipping unreadable score range #%d of component %s: %s",
                position,
                component_id or "no id",
                exc.errors(include_url=False),
            )
    return kept


def _parse_component(position: int, item: Any) -> Optional[PriorityComponent]:
    component_id = None
    if isinstance(item, Mapping):
        component_id = item.get("id")
        item = dict(item)
        for key in ("scoreRanges", "score_ranges"):
            if key in item:
                item[key] = _parse_score_ranges(component_id, item[key])
    try:
        return PriorityComponent.model_validate(item)
    except ValidationError as exc:
        logger.warning(
            "Skipping unreadable priority component #%d (%s): %s",
            position,
            component_id or "no id",
            exc.errors(include_url=False),
        )
        return None


def _parse_thresholds(label: str, value: Any) -> Optional[TierThresholds]:
    if value is None:
        return None
    if not isinstance(value, Mapping):
        logger.warning("%s tier thresholds are not a mapping; ignoring them", label)
        return None
    tiers = {}
    for tier in TIER_PRIORITY_ORDER:
        if value.get(tier) is None:
            continue
        try:
            tiers[tier] = TierRange.model_validate(value[tier])
        except ValidationError as exc:
            logger.warning(
                "Skipping unreadable %s '%s' tier: %s",
                label,
                tier,
                exc.errors(include_url=False),
            )
    return TierThresholds(**tiers)


def _parse_role_configs(value: Any) -> Optional[Dict[str, RoleConfig]]:
    if value is None:
        return None
    if not isinstance(value, Mapping):
        logger.warning("Stored role configs are not a mapping; ignoring them")
        return None
    roles = {}
    for role, item in value.items():
        if isinstance(item, Mapping) and item.get("thresholds") is not None:
            item = dict(item)
            item["thresholds"] = _parse_thresholds(f"role {role}", item["thresholds"])
        try:
            roles[role] = RoleConfig.model_validate(item)
        except ValidationError as exc:
            logger.warning(
                "Skipping unreadable role config %s: %s",
                role,
                exc.errors(include_url=False),
            )
    return roles


def parse_priority_scoring(value: Any) -> PriorityScoringConfig:
    """Parse a stored priority-scoring document part by part.

    An unreadable component, score range, tier or role is dropped on
    its own and the rest of the document is kept.  Only a document that
    is not a mapping at all falls back to the defaults.
    """
    if not isinstance(value, Mapping):
        logger.warning("Stored priority scoring is not a mapping, using defaults")
        return PriorityScoringConfig.model_validate(DEFAULT_PRIORITY_SCORING)

    components = value.get("components")
    if components is None:
        components = []
    elif not isinstance(components, list):
        logger.warning("Stored priority components are not a list; ignoring them")
        components = []

    parsed = [_parse_component(position, item) for position, item in enumerate(components)]
    return PriorityScoringConfig(
        components=[component for component in parsed if component is not None],
        thresholds=_parse_thresholds("default", value.get("thresholds"))
        or TierThresholds(),
        role_configs=_parse_role_configs(_lookup(value, "roleConfigs", "role_configs")),
    )


def _dump_rules(rules: List[RiskRule]) -> List[Dict[str, Any]]:
    return [rule.model_dump(mode="json", by_alias=True, exclude_none=True) for rule in rules]


def _dump_scoring(config: PriorityScoringConfig) -> Dict[str, Any]:
    return config.model_dump(mode="json", by_alias=True, exclude_none=True)


class ConfigStore:
    """Persist and retrieve the risk-rule and priority-scoring documents.

    Pure storage: evaluation logic lives in the engines.  Documents are
    seeded with defaults the first time they are read.  Writes are
    validated before anything is persisted.

    Reads go to the database on every call unless a cache TTL is
    configured; every write invalidates the cached copies.
    """

    def __init__(
        self,
        config_repo: ConfigRepository,
        cache: Optional[CacheService] = None,
        cache_ttl: Optional[int] = None,
    ) -> None:
        self._repo = config_repo
        self._cache = cache or CacheService()
        self._cache_ttl = settings.CONFIG_CACHE_TTL if cache_ttl is None else cache_ttl

    @property
    def _caching(self) -> bool:
        return self._cache_ttl > 0 and self._cache.is_available

    # ------------------------------------------------------------------
    # Low-level document access
    # ------------------------------------------------------------------

    async def _fetch(self, key: str) -> Tuple[Any, Optional[LastModified]]:
        try:
            document = await self._repo.seed_if_missing(key, _DEFAULTS[key])
        except SQLAlchemyError as exc:
            logger.error("Failed to read config document %s: %s", key, exc)
            raise ConfigStoreUnavailableError(
                "Could not load configuration. Please try again."
            ) from exc
        last_modified = None
        if document.updated_at is not None:
            last_modified = LastModified(by=document.modified_by, date=document.updated_at)
        return document.value, last_modified

    async def _read_value(self, key: str) -> Any:
        if self._caching:
            cached = await self._cache.get_json(_CACHE_PREFIX + key)
            if cached is not None:
                return cached

        value, _ = await self._fetch(key)
        if self._caching:
            await self._cache.set_json(_CACHE_PREFIX + key, value, ttl=self._cache_ttl)
        return value

    async def _persist(self, documents: Dict[str, Any], modified_by: str) -> None:
        try:
            for key, value in documents.items():
                await self._repo.upsert(key, value, modified_by)
            await self._repo.commit()
        except SQLAlchemyError as exc:
            logger.error("Failed to persist config documents: %s", exc)
            await self._repo.rollback()
            raise ConfigStoreUnavailableError(
                "Could not save configuration. Please try again."
            ) from exc

        await self._cache.delete(*(_CACHE_PREFIX + key for key in documents))
        logger.info(
            "Config documents %s updated by %s", ", ".join(sorted(documents)), modified_by
        )

    # ------------------------------------------------------------------
    # Risk rules
    # ------------------------------------------------------------------

    async def get_risk_rules(self) -> List[RiskRule]:
        return parse_risk_rules(await self._read_value(RISK_RULES_KEY))

    async def update_risk_rules(
        self, rules: List[RiskRule], modified_by: str
    ) -> List[RiskRule]:
        validate_risk_rules(rules)
        stored = _dump_rules(rules)
        await self._persist({RISK_RULES_KEY: stored}, modified_by)
        return parse_risk_rules(stored)

    # ------------------------------------------------------------------
    # Priority scoring
    # ------------------------------------------------------------------

    async def get_priority_scoring(self) -> PriorityScoringConfig:
        return parse_priority_scoring(await self._read_value(PRIORITY_SCORING_KEY))

    async def update_priority_scoring(
        self, config: PriorityScoringConfig, modified_by: str
    ) -> PriorityScoringConfig:
        validate_priority_scoring(config)
        await self._persist({PRIORITY_SCORING_KEY: _dump_scoring(config)}, modified_by)
        return config

    # ------------------------------------------------------------------
    # Whole configuration
    # ------------------------------------------------------------------

    async def snapshot(self) -> ConfigSnapshot:
        return ConfigSnapshot(
            risk_rules=await self.get_risk_rules(),
            priority_scoring=await self.get_priority_scoring(),
        )

    async def get_config(self) -> AppConfig:
        """Return both documents with the most recent modification stamp.

        Always read from the database, bypassing the cache, because
        this backs the admin console.
        """
        rules_value, rules_modified = await self._fetch(RISK_RULES_KEY)
        scoring_value, scoring_modified = await self._fetch(PRIORITY_SCORING_KEY)

        stamps = [stamp for stamp in (rules_modified, scoring_modified) if stamp]
        last_modified = max(stamps, key=lambda stamp: stamp.date) if stamps else None
        return AppConfig(
            risk_rules=parse_risk_rules(rules_value),
            priority_scoring=parse_priority_scoring(scoring_value),
            last_modified=last_modified,
        )

    async def export_config(self) -> Dict[str, Any]:
        config = await self.get_config()
        return config.model_dump(mode="json", by_alias=True, exclude_none=True)

    async def import_config(self, document: ConfigImport, modified_by: str) -> AppConfig:
        """Replace both documents; nothing is written unless both validate."""
        validate_risk_rules(document.risk_rules)
        validate_priority_scoring(document.priority_scoring)
        await self._persist(
            {
                RISK_RULES_KEY: _dump_rules(document.risk_rules),
                PRIORITY_SCORING_KEY: _dump_scoring(document.priority_scoring),
            },
            modified_by,
        )
        return await self.get_config()

    async def reset_to_defaults(self, modified_by: str) -> AppConfig:
        await self._persist(dict(_DEFAULTS), modified_by)
        logger.info("Configuration reset to defaults by %s", modified_by)
        return await self.get_config()
