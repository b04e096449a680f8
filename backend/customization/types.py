"""
Plain data types used by the customization rules engine and variant tools.

These are independent of the ORM so rule evaluation stays a pure function
over in-memory values. Settings and options are frozen; every rule action
produces new values instead of mutating its input.
"""
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import ClassVar, Dict, List, Optional, Tuple, Union


class UnknownRuleAction(ValueError):
    """Raised when a stored rule carries an action type we do not know"""


@dataclass(frozen=True)
class CustomizationOption:
    option_id: str
    option_name: str
    price: Decimal = Decimal('0')
    price_lab_grown: Optional[Decimal] = None
    image_url: Optional[str] = None
    color_gradient: Optional[str] = None
    display_order: int = 0
    is_active: bool = True

    def to_dict(self):
        return {
            'id': self.option_id,
            'option_id': self.option_id,
            'name': self.option_name,
            'price': str(self.price),
            'price_lab_grown': str(self.price_lab_grown) if self.price_lab_grown is not None else None,
            'image_url': self.image_url,
            'color_gradient': self.color_gradient,
            'display_order': self.display_order,
        }


@dataclass(frozen=True)
class CustomizationSetting:
    id: str
    title: str
    required: bool = True
    options: Tuple[CustomizationOption, ...] = ()
    affects_image_variant: bool = True
    display_order: int = 0
    type: str = 'single'

    def option_ids(self) -> List[str]:
        return [option.option_id for option in self.options]

    def get_option(self, option_id) -> Optional[CustomizationOption]:
        for option in self.options:
            if option.option_id == option_id:
                return option
        return None

    def has_option(self, option_id) -> bool:
        return self.get_option(option_id) is not None

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'type': self.type,
            'required': self.required,
            'affects_image_variant': self.affects_image_variant,
            'display_order': self.display_order,
            'options': [option.to_dict() for option in self.options],
        }


# Rule actions: a closed set, one class per action kind.

@dataclass(frozen=True)
class ExcludeOptions:
    action_type: ClassVar[str] = 'exclude_options'
    option_ids: Tuple[str, ...] = ()

    def apply_to(self, setting):
        return replace(setting, options=tuple(o for o in setting.options if o.option_id not in self.option_ids))


@dataclass(frozen=True)
class IncludeOnly:
    action_type: ClassVar[str] = 'include_only'
    option_ids: Tuple[str, ...] = ()

    def apply_to(self, setting):
        return replace(setting, options=tuple(o for o in setting.options if o.option_id in self.option_ids))


@dataclass(frozen=True)
class SetRequired:
    action_type: ClassVar[str] = 'set_required'

    def apply_to(self, setting):
        return replace(setting, required=True)


@dataclass(frozen=True)
class SetOptional:
    action_type: ClassVar[str] = 'set_optional'

    def apply_to(self, setting):
        return replace(setting, required=False)


@dataclass(frozen=True)
class SetPriceMultiplier:
    action_type: ClassVar[str] = 'set_price_multiplier'
    multiplier: Decimal = Decimal('1')


@dataclass(frozen=True)
class ExcludeSetting:
    action_type: ClassVar[str] = 'exclude_setting'


@dataclass(frozen=True)
class AutoSelect:
    action_type: ClassVar[str] = 'auto_select'
    option_id: Optional[str] = None


@dataclass(frozen=True)
class ProposeSelection:
    action_type: ClassVar[str] = 'propose_selection'
    option_id: Optional[str] = None


RuleAction = Union[
    ExcludeOptions, IncludeOnly, SetRequired, SetOptional,
    SetPriceMultiplier, ExcludeSetting, AutoSelect, ProposeSelection,
]

ACTION_CLASSES = {
    cls.action_type: cls for cls in (
        ExcludeOptions, IncludeOnly, SetRequired, SetOptional,
        SetPriceMultiplier, ExcludeSetting, AutoSelect, ProposeSelection,
    )
}


def build_action(action_type, target_option_ids=None, price_multiplier=None) -> RuleAction:
    """Build the typed action for a stored (action_type, targets, multiplier) triple"""
    option_ids = tuple(str(option_id) for option_id in (target_option_ids or []))

    if action_type == 'exclude_options':
        return ExcludeOptions(option_ids=option_ids)
    if action_type == 'include_only':
        return IncludeOnly(option_ids=option_ids)
    if action_type == 'set_required':
        return SetRequired()
    if action_type == 'set_optional':
        return SetOptional()
    if action_type == 'set_price_multiplier':
        # Unset multipliers count as 1x
        multiplier = Decimal(str(price_multiplier)) if price_multiplier else Decimal('1')
        return SetPriceMultiplier(multiplier=multiplier)
    if action_type == 'exclude_setting':
        return ExcludeSetting()
    if action_type == 'auto_select':
        return AutoSelect(option_id=option_ids[0] if option_ids else None)
    if action_type == 'propose_selection':
        return ProposeSelection(option_id=option_ids[0] if option_ids else None)
    raise UnknownRuleAction(f"Unknown action type: {action_type}")


@dataclass(frozen=True)
class LogicRule:
    id: str
    rule_name: str
    condition_setting_id: str
    condition_option_id: str
    target_setting_id: str
    action: RuleAction
    target_option_ids: Tuple[str, ...] = ()
    description: Optional[str] = None

    @property
    def action_type(self):
        return self.action.action_type

    @classmethod
    def from_model(cls, rule):
        """Build from a CustomizationLogicRule row; raises UnknownRuleAction"""
        target_option_ids = tuple(str(option_id) for option_id in (rule.target_option_ids or []))
        return cls(
            id=str(rule.pk),
            rule_name=rule.rule_name,
            condition_setting_id=rule.condition_setting_id,
            condition_option_id=rule.condition_option_id,
            target_setting_id=rule.target_setting_id,
            action=build_action(rule.action_type, target_option_ids, rule.price_multiplier),
            target_option_ids=target_option_ids,
            description=rule.description,
        )

    def to_dict(self):
        data = {
            'id': self.id,
            'rule_name': self.rule_name,
            'description': self.description,
            'condition_setting_id': self.condition_setting_id,
            'condition_option_id': self.condition_option_id,
            'action_type': self.action_type,
            'target_setting_id': self.target_setting_id,
            'target_option_ids': list(self.target_option_ids),
        }
        if isinstance(self.action, SetPriceMultiplier):
            data['price_multiplier'] = str(self.action.multiplier)
        return data


@dataclass(frozen=True)
class AppliedRule:
    rule: LogicRule
    applied: bool
    reason: str

    def to_dict(self):
        return {'rule': self.rule.to_dict(), 'applied': self.applied, 'reason': self.reason}


@dataclass
class RulesEngineResult:
    filtered_settings: List[CustomizationSetting]
    applied_rules: List[AppliedRule] = field(default_factory=list)
    price_multipliers: Dict[str, Decimal] = field(default_factory=dict)
    auto_selections: Dict[str, str] = field(default_factory=dict)
    proposed_selections: Dict[str, str] = field(default_factory=dict)

    def get_setting(self, setting_id) -> Optional[CustomizationSetting]:
        for setting in self.filtered_settings:
            if setting.id == setting_id:
                return setting
        return None

    def is_option_available(self, setting_id, option_id) -> bool:
        setting = self.get_setting(setting_id)
        return setting is not None and setting.has_option(option_id)

    def to_dict(self):
        return {
            'filtered_settings': [setting.to_dict() for setting in self.filtered_settings],
            'applied_rules': [applied.to_dict() for applied in self.applied_rules],
            'price_multipliers': {key: str(value) for key, value in self.price_multipliers.items()},
            'auto_selections': dict(self.auto_selections),
            'proposed_selections': dict(self.proposed_selections),
        }


@dataclass(frozen=True)
class VariantOption:
    setting_id: str
    setting_title: str
    option_id: str
    option_name: str


@dataclass
class ProductVariant:
    id: str
    name: str
    filename: str
    options: List[VariantOption]
    image_url: Optional[str] = None
    exists: bool = False

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'filename': self.filename,
            'options': [
                {
                    'setting_id': option.setting_id,
                    'setting_title': option.setting_title,
                    'option_id': option.option_id,
                    'option_name': option.option_name,
                }
                for option in self.options
            ],
            'image_url': self.image_url,
            'exists': self.exists,
        }


@dataclass
class VariantGenerationResult:
    variants: List[ProductVariant] = field(default_factory=list)

    @property
    def total_variants(self):
        return len(self.variants)

    @property
    def existing_images(self):
        return sum(1 for variant in self.variants if variant.exists)

    @property
    def missing_images(self):
        return self.total_variants - self.existing_images

    def to_dict(self):
        return {
            'variants': [variant.to_dict() for variant in self.variants],
            'total_variants': self.total_variants,
            'existing_images': self.existing_images,
            'missing_images': self.missing_images,
        }
