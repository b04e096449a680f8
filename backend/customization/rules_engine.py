"""
Customization logic rules engine.

Given the active rules of one jewelry item and the shopper's current
selections, work out which options remain selectable, which settings become
required or optional, per-setting price multipliers, and forced (auto) or
suggested (proposed) selections.

Rules run strictly in load order (creation time) against a progressively
filtered copy of the settings: a rule that removes a setting makes every later
rule targeting that setting a no-op. Overlapping targets resolve as "last
write wins"; there is no conflict solver, so rules layered on the same setting
must be authored in a deliberate order.
"""
import logging
from typing import Dict, List, Optional

from .types import (
    AppliedRule, AutoSelect, CustomizationSetting, ExcludeOptions, ExcludeSetting,
    IncludeOnly, LogicRule, ProposeSelection, RulesEngineResult, SetOptional,
    SetPriceMultiplier, SetRequired, UnknownRuleAction,
)

logger = logging.getLogger(__name__)

REASON_CONDITION_MET = 'Condition met'
REASON_CONDITION_NOT_MET = 'Condition not met'
REASON_TARGET_NOT_FOUND = 'Target setting not found'


def load_rules_for_product(product_id) -> List[LogicRule]:
    """Load active rules of a jewelry item ordered by creation time"""
    from .models import CustomizationLogicRule

    rows = CustomizationLogicRule.objects.filter(
        jewelry_item_id=product_id,
        is_active=True
    ).order_by('created_at', 'id')

    rules = []
    for row in rows:
        try:
            rules.append(LogicRule.from_model(row))
        except UnknownRuleAction as e:
            logger.warning(f"Skipping rule {row.pk} ('{row.rule_name}') for product {product_id}: {e}")
    return rules


class LogicRulesEngine:
    def __init__(self, product_id, rules: Optional[List[LogicRule]] = None):
        self.product_id = product_id
        self.rules = list(rules or [])

    @classmethod
    def create(cls, product_id):
        """Create an engine with the product's rules loaded"""
        engine = cls(product_id)
        engine.load_rules()
        return engine

    def load_rules(self):
        """
        Load all active rules for the product.

        A failure leaves the rule list empty so the engine degrades to a
        no-op filter instead of breaking the customizer.
        """
        try:
            self.rules = load_rules_for_product(self.product_id)
            logger.info(f"Loaded {len(self.rules)} active logic rules for product {self.product_id}")
        except Exception as e:
            self.rules = []
            logger.error(f"Error loading logic rules for product {self.product_id}: {str(e)}", exc_info=True)

    def apply_rules(self, settings: List[CustomizationSetting], state: Dict[str, object]) -> RulesEngineResult:
        """Apply every rule whose condition holds for `state`; inputs are left untouched"""
        filtered_settings = list(settings)
        applied_rules = []
        price_multipliers = {}
        auto_selections = {}
        proposed_selections = {}

        for rule in self.rules:
            if not self.check_condition(rule, state):
                applied_rules.append(AppliedRule(rule=rule, applied=False, reason=REASON_CONDITION_NOT_MET))
                continue

            target_index = self._find_setting_index(filtered_settings, rule.target_setting_id)
            if target_index is None:
                logger.warning(f"Target setting '{rule.target_setting_id}' not found for rule '{rule.rule_name}'")
                applied_rules.append(AppliedRule(rule=rule, applied=False, reason=REASON_TARGET_NOT_FOUND))
                continue

            filtered_settings = self._apply_action(
                rule, filtered_settings, target_index,
                price_multipliers, auto_selections, proposed_selections
            )
            applied_rules.append(AppliedRule(rule=rule, applied=True, reason=REASON_CONDITION_MET))

        applied_count = sum(1 for applied in applied_rules if applied.applied)
        logger.debug(f"Applied {applied_count}/{len(self.rules)} rules for product {self.product_id}")

        return RulesEngineResult(
            filtered_settings=filtered_settings,
            applied_rules=applied_rules,
            price_multipliers=price_multipliers,
            auto_selections=auto_selections,
            proposed_selections=proposed_selections,
        )

    @staticmethod
    def check_condition(rule: LogicRule, state) -> bool:
        return state.get(rule.condition_setting_id) == rule.condition_option_id

    @staticmethod
    def _find_setting_index(settings, setting_id):
        for index, setting in enumerate(settings):
            if setting.id == setting_id:
                return index
        return None

    def _apply_action(self, rule, settings, target_index, price_multipliers, auto_selections, proposed_selections):
        """Return the settings list after `rule`; selection maps are updated in place"""
        action = rule.action
        target = settings[target_index]

        if isinstance(action, (ExcludeOptions, IncludeOnly, SetRequired, SetOptional)):
            settings = list(settings)
            settings[target_index] = action.apply_to(target)
        elif isinstance(action, ExcludeSetting):
            settings = settings[:target_index] + settings[target_index + 1:]
        elif isinstance(action, SetPriceMultiplier):
            price_multipliers[rule.target_setting_id] = action.multiplier
        elif isinstance(action, AutoSelect):
            if action.option_id is not None:
                auto_selections[rule.target_setting_id] = action.option_id
        elif isinstance(action, ProposeSelection):
            if action.option_id is not None:
                proposed_selections[rule.target_setting_id] = action.option_id
        else:
            raise TypeError(f"Unhandled rule action: {action!r}")

        logger.debug(f"Rule '{rule.rule_name}': {self.format_action_description(rule)}")
        return settings

    def get_rules_summary(self) -> List[str]:
        """Human-readable summary of the loaded rules"""
        return [
            f'"{rule.rule_name}": When {rule.condition_setting_id} = {rule.condition_option_id}, '
            f'{self.format_action_description(rule)}'
            for rule in self.rules
        ]

    @staticmethod
    def format_action_description(rule: LogicRule) -> str:
        action = rule.action
        target = rule.target_setting_id
        target_options = ', '.join(rule.target_option_ids)

        if isinstance(action, ExcludeOptions):
            return f"hide [{target_options}] from {target}"
        if isinstance(action, IncludeOnly):
            return f"show only [{target_options}] in {target}"
        if isinstance(action, SetRequired):
            return f"make {target} required"
        if isinstance(action, SetOptional):
            return f"make {target} optional"
        if isinstance(action, SetPriceMultiplier):
            return f"apply {action.multiplier}x price multiplier to {target}"
        if isinstance(action, ExcludeSetting):
            return f"hide entire setting {target}"
        if isinstance(action, AutoSelect):
            return f"auto-select [{target_options}] in {target}"
        if isinstance(action, ProposeSelection):
            return f"propose [{target_options}] in {target}"
        raise TypeError(f"Unhandled rule action: {action!r}")
