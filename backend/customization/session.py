"""
A shopper's customization in progress.

The session owns the selection state and re-runs the rules engine after
every change. Selections are merged with a fixed precedence:

    rule auto-select > special-case hooks > rule proposal > user input

A proposal is applied once: it is written into the user's choices and
remembered, so the shopper can pick something else afterwards without the
proposal snapping back. When the proposal stops firing it is forgotten and
may apply again later.

Hooks are callables `hook(state, result) -> dict` returning updates to
the state; a value of None removes the selection.
"""
import logging
from typing import Callable, Dict, List, Optional

from .configuration import DIAMOND_TYPE_KEY, NATURAL, calculate_total_price
from .types import RulesEngineResult

logger = logging.getLogger(__name__)

MAX_EVALUATION_PASSES = 5

# Preselected so the storefront can show a variant picture straight away
STOREFRONT_DEFAULTS = {
    'first_stone': 'diamond',
    'chain_type': 'black_leather',
    'metal': 'white_gold',
    'second_stone': 'emerald',
}


def default_selections(defaults: Dict[str, str]):
    """Hook selecting `defaults` for settings the shopper has not chosen yet"""
    def hook(state, result):
        updates = {}
        for setting_id, option_id in defaults.items():
            if state.get(setting_id):
                continue
            if result.is_option_available(setting_id, option_id):
                updates[setting_id] = option_id
        return updates
    return hook


def clear_unavailable_selections(state, result):
    """Hook dropping selections whose option a rule removed"""
    updates = {}
    for setting_id, value in state.items():
        setting = result.get_setting(setting_id)
        if setting is None or not setting.options or not isinstance(value, str):
            continue
        if not setting.has_option(value):
            updates[setting_id] = None
    return updates


class CustomizationSession:
    def __init__(self, engine, settings, state=None, hooks: Optional[List[Callable]] = None,
                 consumed_proposals: Optional[Dict[str, str]] = None):
        self.engine = engine
        self.settings = list(settings)
        self.hooks = list(hooks or [])
        self.user_choices = {key: value for key, value in (state or {}).items() if value is not None}
        self.state: Dict[str, object] = {}
        self.result: Optional[RulesEngineResult] = None
        self.generation = 0
        self.image_url = None
        # Proposals already applied earlier; a stateless caller passes them back in
        self.consumed_proposals: Dict[str, str] = dict(consumed_proposals or {})
        self.evaluate()

    @property
    def diamond_type(self):
        return self.state.get(DIAMOND_TYPE_KEY) or NATURAL

    def select(self, setting_id, value):
        """Record a direct choice of the shopper; None clears it"""
        if value is None:
            self.user_choices.pop(setting_id, None)
        else:
            self.user_choices[setting_id] = value
        return self.evaluate()

    def _merge(self, result: RulesEngineResult):
        merged = dict(self.user_choices)

        proposals = {}
        for setting_id, option_id in result.proposed_selections.items():
            if self.consumed_proposals.get(setting_id) == option_id:
                continue
            if not result.is_option_available(setting_id, option_id):
                continue
            proposals[setting_id] = option_id
        merged.update(proposals)

        for hook in self.hooks:
            merged.update(hook(dict(merged), result) or {})

        # A proposal only replaces the shopper's choice when no hook overrode it
        for setting_id, option_id in proposals.items():
            if merged.get(setting_id) != option_id:
                continue
            self.user_choices[setting_id] = option_id
            self.consumed_proposals[setting_id] = option_id

        merged.update(result.auto_selections)
        return {key: value for key, value in merged.items() if value is not None}

    def evaluate(self) -> RulesEngineResult:
        """Re-run the rules until the merged state stops changing"""
        self.generation += 1
        state = dict(self.user_choices)
        result = self.engine.apply_rules(self.settings, state)

        for _ in range(MAX_EVALUATION_PASSES):
            merged = self._merge(result)
            if merged == state:
                break
            state = merged
            result = self.engine.apply_rules(self.settings, state)
        else:
            logger.warning(
                f"Selections for product {getattr(self.engine, 'product_id', None)} did not settle "
                f"after {MAX_EVALUATION_PASSES} passes"
            )

        for setting_id in list(self.consumed_proposals):
            if setting_id not in result.proposed_selections:
                del self.consumed_proposals[setting_id]

        self.state = state
        self.result = result
        return result

    def total_price(self, item):
        return calculate_total_price(
            item, self.result.filtered_settings, self.state,
            diamond_type=self.diamond_type,
            price_multipliers=self.result.price_multipliers
        )

    def image_variant_options(self):
        """(setting_id, option_id) of the current picks that change the photo, in setting order"""
        options = []
        for setting in self.result.filtered_settings:
            if not setting.affects_image_variant:
                continue
            value = self.state.get(setting.id)
            if isinstance(value, str) and setting.has_option(value):
                options.append((setting.id, value))
        return options

    # Variant image lookups are tagged with the generation they started in;
    # a result arriving after the state moved on is dropped.

    def begin_image_lookup(self) -> int:
        return self.generation

    def publish_image(self, generation, image_url) -> bool:
        if generation != self.generation:
            logger.debug(f"Dropping stale variant image from generation {generation} (now {self.generation})")
            return False
        self.image_url = image_url
        return True

    def resolve_variant_image(self, resolver) -> bool:
        """Look up the picture with `resolver(variant_options)` and publish it if still current"""
        generation = self.begin_image_lookup()
        image_url = resolver(self.image_variant_options())
        return self.publish_image(generation, image_url)
