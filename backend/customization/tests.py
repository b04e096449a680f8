"""
Test suite for the customization module
Tests: rules engine, filename service, pricing, variant generation, selection session and API
"""
from django.core.cache import cache
from django.core.management import CommandError, call_command
from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase
from rest_framework import status
from decimal import Decimal
from types import SimpleNamespace
from io import StringIO
import itertools
from unittest import mock
from backend.core.cache_utils import cache_item_configuration, get_cached_item_configuration
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.media.storage import StorageError
from backend.customization.configuration import (
    build_settings, calculate_total_price, get_item_configuration, load_item_settings,
)
from backend.customization.filename_service import (
    DynamicFilenameService, FilenameMapping, FilenameMappingCache, build_filename, extract_stone,
    get_filename_service,
)
from backend.customization.models import CustomizationLogicRule
from backend.customization.rules_engine import LogicRulesEngine
from backend.customization.session import (
    CustomizationSession, clear_unavailable_selections, default_selections,
)
from backend.customization.types import (
    CustomizationOption, CustomizationSetting, LogicRule, UnknownRuleAction, build_action,
)
from backend.customization.variant_generator import (
    VariantGenerationError, VariantGenerator, generate_upload_path, get_storage_base_url,
    resolve_variant_image,
)


def make_setting(setting_id, option_ids, required=True, affects_image_variant=True, prices=None):
    prices = prices or {}
    return CustomizationSetting(
        id=setting_id,
        title=setting_id.replace('_', ' ').title(),
        required=required,
        affects_image_variant=affects_image_variant,
        options=tuple(
            CustomizationOption(
                option_id=option_id,
                option_name=option_id.replace('_', ' ').title(),
                price=Decimal(prices.get(option_id, '0')),
                display_order=index
            )
            for index, option_id in enumerate(option_ids)
        )
    )


def make_rule(rule_id, condition_setting_id, condition_option_id, action_type, target_setting_id,
              target_option_ids=(), price_multiplier=None, rule_name=None):
    return LogicRule(
        id=str(rule_id),
        rule_name=rule_name or f'rule {rule_id}',
        condition_setting_id=condition_setting_id,
        condition_option_id=condition_option_id,
        target_setting_id=target_setting_id,
        action=build_action(action_type, list(target_option_ids), price_multiplier),
        target_option_ids=tuple(target_option_ids),
    )


class FakeCache:
    """Dict-backed stand-in for the Django cache"""

    def __init__(self):
        self.data = {}

    def get(self, key, default=None):
        return self.data.get(key, default)

    def set(self, key, value, timeout=None):
        self.data[key] = value

    def delete(self, key):
        self.data.pop(key, None)


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


class FakeStorage:
    def __init__(self, files=None, fail=False):
        self.files = set(files or [])
        self.fail = fail
        self.list_calls = []

    def list_files(self, bucket, folder='', limit=1000):
        self.list_calls.append((bucket, folder))
        if self.fail:
            raise StorageError('listing failed')
        return sorted(self.files)

    def get_public_url(self, bucket, path):
        return f'https://cdn.test/{bucket}/{path}'


def plain_filename_service():
    """Filename service with no slug mappings: every segment is the raw option id"""
    return DynamicFilenameService(mapping_cache=FilenameMappingCache(backend=FakeCache()), loader=lambda jewelry_type: [])


class RulesEngineTests(SimpleTestCase):
    """Test rule evaluation over in-memory settings"""

    def setUp(self):
        self.settings = [
            make_setting('chain_type', ['black_leather', 'gold_cord']),
            make_setting('metal', ['white_gold', 'yellow_gold', 'rose_gold']),
            make_setting('engraving', ['none', 'initials'], required=False),
        ]

    def engine(self, *rules):
        return LogicRulesEngine('product-1', rules=list(rules))

    def test_exclude_options(self):
        engine = self.engine(make_rule(1, 'chain_type', 'black_leather', 'exclude_options', 'metal', ['rose_gold']))
        result = engine.apply_rules(self.settings, {'chain_type': 'black_leather'})

        self.assertEqual(result.get_setting('metal').option_ids(), ['white_gold', 'yellow_gold'])
        self.assertTrue(result.applied_rules[0].applied)
        self.assertEqual(result.applied_rules[0].reason, 'Condition met')

    def test_condition_not_met_leaves_settings_alone(self):
        engine = self.engine(make_rule(1, 'chain_type', 'black_leather', 'exclude_options', 'metal', ['rose_gold']))
        result = engine.apply_rules(self.settings, {'chain_type': 'gold_cord'})

        self.assertEqual(result.get_setting('metal').option_ids(), ['white_gold', 'yellow_gold', 'rose_gold'])
        self.assertFalse(result.applied_rules[0].applied)
        self.assertEqual(result.applied_rules[0].reason, 'Condition not met')

    def test_include_only_is_subset_of_input(self):
        engine = self.engine(
            make_rule(1, 'chain_type', 'gold_cord', 'include_only', 'metal', ['yellow_gold', 'platinum'])
        )
        result = engine.apply_rules(self.settings, {'chain_type': 'gold_cord'})

        self.assertEqual(result.get_setting('metal').option_ids(), ['yellow_gold'])

    def test_set_required_and_optional(self):
        engine = self.engine(
            make_rule(1, 'chain_type', 'gold_cord', 'set_required', 'engraving'),
            make_rule(2, 'chain_type', 'gold_cord', 'set_optional', 'metal'),
        )
        result = engine.apply_rules(self.settings, {'chain_type': 'gold_cord'})

        self.assertTrue(result.get_setting('engraving').required)
        self.assertFalse(result.get_setting('metal').required)

    def test_price_multiplier_last_write_wins(self):
        engine = self.engine(
            make_rule(1, 'chain_type', 'gold_cord', 'set_price_multiplier', 'metal', price_multiplier=Decimal('1.5')),
            make_rule(2, 'chain_type', 'gold_cord', 'set_price_multiplier', 'metal', price_multiplier=Decimal('2')),
        )
        result = engine.apply_rules(self.settings, {'chain_type': 'gold_cord'})

        self.assertEqual(result.price_multipliers, {'metal': Decimal('2')})

    def test_price_multiplier_defaults_to_one(self):
        engine = self.engine(make_rule(1, 'chain_type', 'gold_cord', 'set_price_multiplier', 'metal'))
        result = engine.apply_rules(self.settings, {'chain_type': 'gold_cord'})

        self.assertEqual(result.price_multipliers['metal'], Decimal('1'))

    def test_exclude_setting_makes_later_rules_noop(self):
        engine = self.engine(
            make_rule(1, 'chain_type', 'gold_cord', 'exclude_setting', 'engraving'),
            make_rule(2, 'chain_type', 'gold_cord', 'set_required', 'engraving'),
            make_rule(3, 'chain_type', 'gold_cord', 'exclude_options', 'metal', ['rose_gold']),
        )
        with self.assertLogs('backend.customization.rules_engine', level='WARNING') as logs:
            result = engine.apply_rules(self.settings, {'chain_type': 'gold_cord'})

        self.assertIsNone(result.get_setting('engraving'))
        self.assertEqual([setting.id for setting in result.filtered_settings], ['chain_type', 'metal'])
        self.assertFalse(result.applied_rules[1].applied)
        self.assertEqual(result.applied_rules[1].reason, 'Target setting not found')
        # evaluation continues after the skipped rule
        self.assertTrue(result.applied_rules[2].applied)
        self.assertIn("Target setting 'engraving' not found", logs.output[0])

    def test_auto_and_proposed_selections(self):
        engine = self.engine(
            make_rule(1, 'chain_type', 'gold_cord', 'auto_select', 'metal', ['yellow_gold', 'white_gold']),
            make_rule(2, 'chain_type', 'gold_cord', 'propose_selection', 'engraving', ['initials']),
        )
        result = engine.apply_rules(self.settings, {'chain_type': 'gold_cord'})

        self.assertEqual(result.auto_selections, {'metal': 'yellow_gold'})
        self.assertEqual(result.proposed_selections, {'engraving': 'initials'})

    def test_auto_select_without_target_option_is_noop(self):
        engine = self.engine(make_rule(1, 'chain_type', 'gold_cord', 'auto_select', 'metal'))
        result = engine.apply_rules(self.settings, {'chain_type': 'gold_cord'})

        self.assertEqual(result.auto_selections, {})
        self.assertTrue(result.applied_rules[0].applied)

    def test_apply_rules_is_pure(self):
        engine = self.engine(
            make_rule(1, 'chain_type', 'gold_cord', 'exclude_setting', 'engraving'),
            make_rule(2, 'chain_type', 'gold_cord', 'exclude_options', 'metal', ['rose_gold']),
        )
        settings = list(self.settings)
        state = {'chain_type': 'gold_cord'}

        first = engine.apply_rules(settings, state)
        second = engine.apply_rules(settings, state)

        self.assertEqual(settings, self.settings)
        self.assertEqual(state, {'chain_type': 'gold_cord'})
        self.assertEqual(first.to_dict(), second.to_dict())

    def test_exclude_options_never_grows_list(self):
        engine = self.engine(make_rule(1, 'chain_type', 'gold_cord', 'exclude_options', 'metal', ['platinum']))
        result = engine.apply_rules(self.settings, {'chain_type': 'gold_cord'})

        self.assertEqual(result.get_setting('metal').option_ids(), ['white_gold', 'yellow_gold', 'rose_gold'])

    def test_unknown_action_is_rejected_when_parsed(self):
        with self.assertRaises(UnknownRuleAction):
            build_action('teleport', ['x'])

    def test_rules_summary(self):
        engine = self.engine(
            make_rule(1, 'chain_type', 'black_leather', 'exclude_options', 'metal', ['rose_gold'],
                      rule_name='No rose on leather'),
            make_rule(2, 'chain_type', 'gold_cord', 'set_price_multiplier', 'metal', price_multiplier=Decimal('1.5'),
                      rule_name='Cord premium'),
        )
        self.assertEqual(engine.get_rules_summary(), [
            '"No rose on leather": When chain_type = black_leather, hide [rose_gold] from metal',
            '"Cord premium": When chain_type = gold_cord, apply 1.5x price multiplier to metal',
        ])


class RulesEngineLoadTests(TestCase):
    """Test loading rules from the database"""

    def setUp(self):
        self.item = TestDataFactory.create_jewelry_item()

    def test_loads_active_rules_in_creation_order(self):
        first = TestDataFactory.create_rule(self.item, 'chain_type', 'a', 'exclude_options', 'metal', ['x'])
        TestDataFactory.create_rule(self.item, 'chain_type', 'a', 'set_required', 'metal', is_active=False)
        second = TestDataFactory.create_rule(self.item, 'chain_type', 'b', 'set_optional', 'metal')
        other_item = TestDataFactory.create_jewelry_item()
        TestDataFactory.create_rule(other_item, 'chain_type', 'a', 'set_optional', 'metal')

        engine = LogicRulesEngine.create(self.item.id)

        self.assertEqual([rule.id for rule in engine.rules], [str(first.id), str(second.id)])

    def test_unknown_action_rule_is_skipped(self):
        CustomizationLogicRule.objects.create(
            jewelry_item=self.item, rule_name='Broken', condition_setting_id='a', condition_option_id='b',
            action_type='teleport', target_setting_id='c'
        )
        TestDataFactory.create_rule(self.item, 'chain_type', 'a', 'set_optional', 'metal')

        with self.assertLogs('backend.customization.rules_engine', level='WARNING'):
            engine = LogicRulesEngine.create(self.item.id)

        self.assertEqual([rule.action_type for rule in engine.rules], ['set_optional'])

    def test_load_failure_leaves_empty_engine(self):
        with mock.patch('backend.customization.rules_engine.load_rules_for_product',
                        side_effect=DatabaseError('connection lost')):
            with self.assertLogs('backend.customization.rules_engine', level='ERROR'):
                engine = LogicRulesEngine.create(self.item.id)

        self.assertEqual(engine.rules, [])
        settings = [make_setting('metal', ['white_gold'])]
        self.assertEqual(engine.apply_rules(settings, {}).filtered_settings, settings)


class FilenameBuildTests(SimpleTestCase):
    """Test variant filename construction"""

    def test_extract_stone(self):
        self.assertEqual(extract_stone('necklace_diamond'), 'diamond')
        self.assertEqual(extract_stone('x_blue_sapphire'), 'blue_sapphire')
        self.assertEqual(extract_stone('bracelet_ruby'), 'ruby')
        self.assertEqual(extract_stone('black_onyx'), 'black_onyx')
        self.assertEqual(extract_stone('emerald'), 'emerald')

    def test_diamond_first_stone_uses_second_stone_only(self):
        filename = build_filename('necklace', [
            ('chain_type', 'black_leather'), ('first_stone', 'diamond'),
            ('second_stone', 'emerald'), ('metal', 'white_gold'),
        ], {})
        self.assertEqual(filename, 'necklace-black_leather-emerald-white_gold.webp')

    def test_diamond_and_ruby(self):
        filename = build_filename('bracelet', [('first_stone', 'diamond'), ('second_stone', 'ruby')], {})
        self.assertEqual(filename, 'bracelet-ruby.webp')

    def test_non_diamond_first_stone_uses_both(self):
        filename = build_filename('bracelet', [('first_stone', 'emerald'), ('second_stone', 'ruby')], {})
        self.assertEqual(filename, 'bracelet-emerald-ruby.webp')

    def test_contextual_diamond_counts_as_diamond(self):
        filename = build_filename('necklace', [('first_stone', 'necklace_diamond'), ('second_stone', 'ruby')], {})
        self.assertEqual(filename, 'necklace-ruby.webp')

    def test_first_stone_alone(self):
        filename = build_filename('ring', [('first_stone', 'emerald'), ('metal', 'yellow_gold')], {})
        self.assertEqual(filename, 'ring-emerald-yellow_gold.webp')

    def test_standard_segments_ignore_input_order(self):
        options = [
            ('metal', 'white_gold'), ('second_stone', 'ruby'),
            ('chain_type', 'gold_cord'), ('first_stone', 'emerald'),
        ]
        self.assertEqual(
            build_filename('necklace', options, {}),
            build_filename('necklace', list(reversed(options)), {})
        )
        self.assertEqual(build_filename('necklace', options, {}), 'necklace-gold_cord-emerald-ruby-white_gold.webp')

    def test_extras_keep_input_order(self):
        options = [('metal', 'white_gold'), ('accent', 'red'), ('charm', 'star')]
        self.assertEqual(build_filename('necklace', options, {}), 'necklace-white_gold-red-star.webp')
        self.assertEqual(
            build_filename('necklace', [options[0], options[2], options[1]], {}),
            'necklace-white_gold-star-red.webp'
        )

    def test_slugs_fall_back_to_option_id(self):
        options = [('chain_type', 'black_leather'), ('second_stone', 'blue_sapphire'), ('metal', 'white_gold')]
        slug_map = {'black_leather': 'black-leather', 'white_gold': 'whitegold'}
        self.assertEqual(build_filename('bracelet', options, slug_map), 'bracelet-black-leather-blue_sapphire-whitegold.webp')


class FilenameMappingCacheTests(SimpleTestCase):
    """Test TTL caching of filename mappings"""

    def setUp(self):
        self.backend = FakeCache()
        self.clock = FakeClock(1000.0)
        self.loads = []

        def loader(jewelry_type):
            self.loads.append(jewelry_type)
            return [FilenameMapping(option_id='white_gold', filename_slug='whitegold', setting_id='metal')]

        self.service = DynamicFilenameService(
            mapping_cache=FilenameMappingCache(ttl=300, backend=self.backend, clock=self.clock),
            loader=loader
        )

    def test_mappings_are_cached_until_ttl(self):
        self.service.get_filename_mappings('necklace')
        self.clock.now += 299
        self.service.get_filename_mappings('necklace')
        self.assertEqual(self.loads, ['necklace'])

        self.clock.now += 1
        self.service.get_filename_mappings('necklace')
        self.assertEqual(self.loads, ['necklace', 'necklace'])

    def test_cache_is_per_type(self):
        self.service.get_filename_mappings('necklace')
        self.service.get_filename_mappings('bracelet')
        self.assertEqual(self.loads, ['necklace', 'bracelet'])

    def test_clear_one_type(self):
        self.service.get_filename_mappings('necklace')
        self.service.get_filename_mappings('bracelet')
        self.service.clear_cache('necklace')

        self.service.get_filename_mappings('necklace')
        self.service.get_filename_mappings('bracelet')
        self.assertEqual(self.loads, ['necklace', 'bracelet', 'necklace'])

    def test_clear_all_types(self):
        self.service.get_filename_mappings('necklace')
        self.service.get_filename_mappings('bracelet')
        self.service.clear_cache()

        self.service.get_filename_mappings('necklace')
        self.service.get_filename_mappings('bracelet')
        self.assertEqual(self.loads, ['necklace', 'bracelet', 'necklace', 'bracelet'])

    def test_refresh_reloads(self):
        self.service.get_filename_mappings('ring')
        mappings = self.service.refresh_after_db_change('ring')
        self.assertEqual(self.loads, ['ring', 'ring'])
        self.assertEqual(mappings[0].filename_slug, 'whitegold')

    def test_load_failure_is_not_cached(self):
        def failing_loader(jewelry_type):
            raise DatabaseError('down')

        service = DynamicFilenameService(
            mapping_cache=FilenameMappingCache(ttl=300, backend=self.backend, clock=self.clock),
            loader=failing_loader
        )
        with self.assertLogs('backend.customization.filename_service', level='ERROR'):
            self.assertEqual(service.get_filename_mappings('necklace'), [])
        self.assertIsNone(service.cache.get('necklace'))

    def test_slug_lookup_and_validation(self):
        self.assertEqual(self.service.get_filename_slug('necklace', 'white_gold'), 'whitegold')
        self.assertEqual(self.service.get_filename_slug('necklace', 'ruby'), 'ruby')

        is_valid, missing = self.service.validate_variant_mappings(
            'necklace', [{'setting_id': 'metal', 'option_id': 'white_gold'}, {'setting_id': 'second_stone', 'option_id': 'ruby'}]
        )
        self.assertFalse(is_valid)
        self.assertEqual(missing, ['ruby'])


class FilenameMappingDatabaseTests(TestCase):
    """Test reading filename mappings from customization options"""

    def setUp(self):
        cache.clear()
        self.necklace = TestDataFactory.create_jewelry_item(type='necklace')
        TestDataFactory.create_option(self.necklace, 'metal', 'white_gold', filename_slug='whitegold')
        TestDataFactory.create_option(self.necklace, 'metal', 'yellow_gold', filename_slug='')
        TestDataFactory.create_option(self.necklace, 'metal', 'rose_gold', filename_slug='rosegold', is_active=False)
        TestDataFactory.create_option(self.necklace, 'ring_size', 'seven', filename_slug='7', affects_image_variant=False)
        TestDataFactory.create_option(self.necklace, 'second_stone', 'blue_sapphire', filename_slug='bluesapphire')

        inactive = TestDataFactory.create_jewelry_item(type='necklace', is_active=False)
        TestDataFactory.create_option(inactive, 'metal', 'platinum', filename_slug='plat')
        bracelet = TestDataFactory.create_jewelry_item(type='bracelet')
        TestDataFactory.create_option(bracelet, 'metal', 'silver', filename_slug='silver')

        self.service = DynamicFilenameService(mapping_cache=FilenameMappingCache(backend=FakeCache()))

    def test_mapping_table_filters(self):
        mappings = self.service.get_filename_mappings('necklace')
        self.assertEqual(
            sorted((mapping.option_id, mapping.filename_slug) for mapping in mappings),
            [('blue_sapphire', 'bluesapphire'), ('white_gold', 'whitegold')]
        )

    def test_generate_dynamic_filename_uses_slugs(self):
        filename = self.service.generate_dynamic_filename('necklace', [
            {'setting_id': 'second_stone', 'option_id': 'blue_sapphire'},
            {'setting_id': 'metal', 'option_id': 'yellow_gold'},
        ])
        self.assertEqual(filename, 'necklace-bluesapphire-yellow_gold.webp')

    def test_option_change_invalidates_default_cache(self):
        service = get_filename_service()
        service.get_filename_mappings('necklace')
        self.assertIsNotNone(service.cache.get('necklace'))

        with self.captureOnCommitCallbacks(execute=True):
            TestDataFactory.create_option(self.necklace, 'chain_type', 'gold_cord', filename_slug='goldcord')

        self.assertIsNone(service.cache.get('necklace'))
        option_ids = {mapping.option_id for mapping in service.get_filename_mappings('necklace')}
        self.assertIn('gold_cord', option_ids)

    def test_item_type_and_slug_change_invalidates_previous_entries(self):
        service = get_filename_service()
        service.get_filename_mappings('necklace')
        service.get_filename_mappings('ring')
        old_slug = self.necklace.slug
        _, cache_key = get_cached_item_configuration(old_slug)
        cache_item_configuration(cache_key, {'slug': old_slug})

        with self.captureOnCommitCallbacks(execute=True):
            self.necklace.type = 'ring'
            self.necklace.slug = 'renamed-ring'
            self.necklace.save()

        self.assertIsNone(service.cache.get('necklace'))
        self.assertIsNone(service.cache.get('ring'))
        self.assertIsNone(get_cached_item_configuration(old_slug)[0])


class ConfigurationTests(TestCase):
    """Test settings grouping, storefront configuration and pricing"""

    def setUp(self):
        cache.clear()
        self.item = TestDataFactory.create_jewelry_item(
            type='bracelet',
            base_price=Decimal('100.00'),
            base_price_lab_grown=Decimal('80.00'),
            black_onyx_base_price=Decimal('70.00'),
            black_onyx_base_price_lab_grown=Decimal('60.00'),
        )
        TestDataFactory.create_option(self.item, 'metal', 'yellow_gold', setting_display_order=2, display_order=1,
                                      price=Decimal('40.00'))
        TestDataFactory.create_option(self.item, 'metal', 'white_gold', setting_display_order=2, display_order=0,
                                      price=Decimal('30.00'), price_lab_grown=Decimal('25.00'))
        TestDataFactory.create_option(self.item, 'first_stone', 'diamond', setting_display_order=1)
        TestDataFactory.create_option(self.item, 'first_stone', 'black_onyx', setting_display_order=1, display_order=1)
        TestDataFactory.create_option(self.item, 'first_stone', 'ruby', setting_display_order=1, display_order=2,
                                      is_active=False)

    def test_build_settings_orders_settings_and_options(self):
        settings = load_item_settings(self.item.id)

        self.assertEqual([setting.id for setting in settings], ['first_stone', 'metal'])
        self.assertEqual(settings[0].option_ids(), ['diamond', 'black_onyx'])
        self.assertEqual(settings[1].option_ids(), ['white_gold', 'yellow_gold'])

    def test_build_settings_groups_rows(self):
        rows = [
            SimpleNamespace(setting_id='b', setting_title='B', setting_display_order=1, required=False,
                            affects_image_variant=False, option_id='b1', option_name='B1', price=None,
                            price_lab_grown=None, image_url='', color_gradient=None, display_order=0, is_active=True),
            SimpleNamespace(setting_id='a', setting_title='A', setting_display_order=0, required=True,
                            affects_image_variant=True, option_id='a1', option_name='A1', price=Decimal('5'),
                            price_lab_grown=None, image_url=None, color_gradient='#fff', display_order=0, is_active=True),
        ]
        settings = build_settings(rows)

        self.assertEqual([setting.id for setting in settings], ['a', 'b'])
        self.assertFalse(settings[1].required)
        self.assertFalse(settings[1].affects_image_variant)
        self.assertEqual(settings[1].options[0].price, Decimal('0'))

    def test_item_configuration(self):
        data = get_item_configuration(self.item.slug)

        self.assertEqual(data['id'], self.item.id)
        self.assertEqual(data['base_price'], '100.00')
        self.assertEqual([setting['id'] for setting in data['settings']], ['first_stone', 'metal'])

        with self.assertNumQueries(0):
            self.assertEqual(get_item_configuration(self.item.slug), data)

    def test_item_configuration_only_for_active_customizable_items(self):
        ready_made = TestDataFactory.create_jewelry_item(product_type='ready_made')
        inactive = TestDataFactory.create_jewelry_item(is_active=False)

        self.assertIsNone(get_item_configuration(ready_made.slug))
        self.assertIsNone(get_item_configuration(inactive.slug))
        self.assertIsNone(get_item_configuration('does-not-exist'))

    def test_total_price_natural(self):
        settings = load_item_settings(self.item.id)
        total = calculate_total_price(self.item, settings, {'first_stone': 'diamond', 'metal': 'yellow_gold'})
        self.assertEqual(total, Decimal('140.00'))

    def test_total_price_lab_grown(self):
        settings = load_item_settings(self.item.id)
        state = {'first_stone': 'diamond', 'metal': 'white_gold'}

        self.assertEqual(calculate_total_price(self.item, settings, state, diamond_type='lab_grown'), Decimal('105.00'))
        # No lab-grown price on the option: natural price is charged
        state['metal'] = 'yellow_gold'
        self.assertEqual(calculate_total_price(self.item, settings, state, diamond_type='lab_grown'), Decimal('120.00'))

    def test_total_price_black_onyx_base(self):
        settings = load_item_settings(self.item.id)
        state = {'first_stone': 'black_onyx', 'metal': 'white_gold'}

        self.assertEqual(calculate_total_price(self.item, settings, state), Decimal('100.00'))
        self.assertEqual(calculate_total_price(self.item, settings, state, diamond_type='lab_grown'), Decimal('85.00'))

    def test_total_price_applies_multipliers(self):
        settings = load_item_settings(self.item.id)
        total = calculate_total_price(
            self.item, settings, {'metal': 'yellow_gold'},
            price_multipliers={'metal': Decimal('1.5')}
        )
        self.assertEqual(total, Decimal('160.00'))

    def test_unavailable_selection_is_not_charged(self):
        settings = [make_setting('metal', ['white_gold'], prices={'white_gold': '30'})]
        total = calculate_total_price(self.item, settings, {'metal': 'yellow_gold', 'engraving': 'JD'})
        self.assertEqual(total, Decimal('100.00'))


class VariantGeneratorTests(TestCase):
    """Test variant enumeration, rule filtering and image matching"""

    def setUp(self):
        self.item = TestDataFactory.create_jewelry_item(type='necklace')
        TestDataFactory.create_options(self.item, 'chain_type', ['black_leather'], setting_display_order=0)
        TestDataFactory.create_options(self.item, 'first_stone', ['diamond'], setting_display_order=1)
        TestDataFactory.create_options(self.item, 'second_stone', ['emerald', 'ruby'], setting_display_order=2)
        TestDataFactory.create_options(self.item, 'metal', ['white_gold'], setting_display_order=3)
        TestDataFactory.create_options(self.item, 'ring_size', ['six', 'seven'], setting_display_order=4,
                                       affects_image_variant=False)
        self.storage = FakeStorage(files=['necklace-black_leather-emerald-white_gold.PNG', 'unrelated.webp'])

    def generator(self, **kwargs):
        kwargs.setdefault('storage', self.storage)
        kwargs.setdefault('filename_service', plain_filename_service())
        return VariantGenerator(**kwargs)

    def test_generates_variants_and_matches_images(self):
        result = self.generator().generate_variants_for_product(self.item.id, 'necklace')

        self.assertEqual(result.total_variants, 2)
        self.assertEqual(result.existing_images, 1)
        self.assertEqual(result.missing_images, 1)

        emerald, ruby = result.variants
        self.assertEqual(emerald.id, f'{self.item.id}_black_leather-diamond-emerald-white_gold')
        self.assertEqual(emerald.name, 'Black Leather + Diamond + Emerald + White Gold')
        self.assertTrue(emerald.exists)
        self.assertEqual(emerald.filename, 'necklace-black_leather-emerald-white_gold.PNG')
        self.assertEqual(
            emerald.image_url,
            'https://cdn.test/customization-item/necklaces/necklace-black_leather-emerald-white_gold.PNG'
        )
        self.assertFalse(ruby.exists)
        self.assertIsNone(ruby.image_url)
        self.assertEqual(ruby.filename, 'necklace-black_leather-ruby-white_gold.webp')
        self.assertEqual(self.storage.list_calls, [('customization-item', 'necklaces')])

    def test_settings_not_affecting_image_are_skipped(self):
        result = self.generator().generate_variants_for_product(self.item.id, 'necklace')
        for variant in result.variants:
            self.assertNotIn('ring_size', [option.setting_id for option in variant.options])

    def test_webp_preferred_over_png(self):
        self.storage.files.add('necklace-black_leather-emerald-white_gold.webp')
        result = self.generator().generate_variants_for_product(self.item.id, 'necklace')
        self.assertEqual(result.variants[0].filename, 'necklace-black_leather-emerald-white_gold.webp')

    def test_first_setting_varies_slowest(self):
        TestDataFactory.create_option(self.item, 'metal', 'yellow_gold', setting_display_order=3, display_order=1)
        result = self.generator().generate_variants_for_product(self.item.id, 'ring')

        self.assertEqual([variant.name.split(' + ')[2:] for variant in result.variants], [
            ['Emerald', 'White Gold'], ['Emerald', 'Yellow Gold'],
            ['Ruby', 'White Gold'], ['Ruby', 'Yellow Gold'],
        ])

    def test_rules_exclude_combinations(self):
        TestDataFactory.create_option(self.item, 'metal', 'yellow_gold', setting_display_order=3, display_order=1)
        TestDataFactory.create_rule(self.item, 'second_stone', 'ruby', 'exclude_options', 'metal', ['white_gold'])

        result = self.generator().generate_variants_for_product(self.item.id, 'necklace')

        self.assertEqual([variant.name for variant in result.variants], [
            'Black Leather + Diamond + Emerald + White Gold',
            'Black Leather + Diamond + Emerald + Yellow Gold',
            'Black Leather + Diamond + Ruby + Yellow Gold',
        ])

    def test_duplicate_filenames_keep_first_for_necklace_and_bracelet(self):
        TestDataFactory.create_option(self.item, 'first_stone', 'necklace_diamond', setting_display_order=1,
                                      display_order=1)
        for product_type in ('necklace', 'bracelet'):
            result = self.generator().generate_variants_for_product(self.item.id, product_type)
            filenames = [variant.filename for variant in result.variants]
            self.assertEqual(len(filenames), len(set(filenames)))
            self.assertEqual(result.total_variants, 2)
            self.assertTrue(all('Necklace Diamond' not in variant.name for variant in result.variants))

    def test_duplicate_filenames_kept_for_rings(self):
        TestDataFactory.create_option(self.item, 'first_stone', 'necklace_diamond', setting_display_order=1,
                                      display_order=1)
        result = self.generator().generate_variants_for_product(self.item.id, 'ring')
        self.assertEqual(result.total_variants, 4)

    def test_storage_failure_marks_all_missing(self):
        generator = self.generator(storage=FakeStorage(fail=True))
        with self.assertLogs('backend.customization.variant_generator', level='ERROR'):
            result = generator.generate_variants_for_product(self.item.id, 'necklace')

        self.assertEqual(result.total_variants, 2)
        self.assertEqual(result.existing_images, 0)

    def test_validation_error_keeps_combination(self):
        broken_engine = mock.Mock()
        broken_engine.apply_rules.side_effect = RuntimeError('boom')
        generator = self.generator(engine_factory=lambda product_id: broken_engine)

        with self.assertLogs('backend.customization.variant_generator', level='ERROR'):
            result = generator.generate_variants_for_product(self.item.id, 'necklace')
        self.assertEqual(result.total_variants, 2)

    def test_database_failure_raises(self):
        with mock.patch('backend.customization.variant_generator.get_active_option_rows',
                        side_effect=DatabaseError('down')):
            with self.assertRaises(VariantGenerationError):
                self.generator().generate_variants_for_product(self.item.id, 'necklace')

    def test_no_options_gives_empty_result(self):
        empty_item = TestDataFactory.create_jewelry_item()
        result = self.generator().generate_variants_for_product(empty_item.id, 'necklace')

        self.assertEqual(result.to_dict(), {'variants': [], 'total_variants': 0, 'existing_images': 0, 'missing_images': 0})
        self.assertEqual(self.storage.list_calls, [])

    def test_storage_paths(self):
        self.assertEqual(get_storage_base_url('bracelet'), 'bracelets/')
        self.assertEqual(generate_upload_path('bracelet', 'a.webp'), 'bracelets/a.webp')

    def test_resolve_variant_image(self):
        options = [('chain_type', 'black_leather'), ('second_stone', 'emerald'), ('metal', 'white_gold')]
        url = resolve_variant_image('necklace', options, storage=self.storage, filename_service=plain_filename_service())
        self.assertEqual(url, 'https://cdn.test/customization-item/necklaces/necklace-black_leather-emerald-white_gold.PNG')

        missing = [('chain_type', 'gold_cord'), ('metal', 'white_gold')]
        self.assertIsNone(resolve_variant_image('necklace', missing, storage=self.storage,
                                                filename_service=plain_filename_service()))


class CustomizationSessionTests(SimpleTestCase):
    """Test selection merging, proposals and stale image lookups"""

    def setUp(self):
        self.settings = [
            make_setting('chain_type', ['black_leather', 'gold_cord']),
            make_setting('second_stone', ['emerald', 'ruby']),
            make_setting('metal', ['white_gold', 'yellow_gold', 'rose_gold'], prices={'yellow_gold': '40'}),
        ]

    def session(self, rules=(), state=None, hooks=None, consumed_proposals=None):
        return CustomizationSession(LogicRulesEngine('p', rules=list(rules)), self.settings, state=state, hooks=hooks,
                                    consumed_proposals=consumed_proposals)

    def test_proposal_applies_once_then_user_can_override(self):
        rules = [make_rule(1, 'second_stone', 'ruby', 'propose_selection', 'metal', ['yellow_gold'])]
        session = self.session(rules, state={'second_stone': 'ruby'})
        self.assertEqual(session.state['metal'], 'yellow_gold')

        session.select('metal', 'white_gold')
        self.assertEqual(session.state['metal'], 'white_gold')

        session.select('second_stone', 'emerald')
        self.assertEqual(session.state['metal'], 'white_gold')

        # the proposal fires again after it stopped firing
        session.select('second_stone', 'ruby')
        self.assertEqual(session.state['metal'], 'yellow_gold')

    def test_proposal_overrides_plain_user_input(self):
        rules = [make_rule(1, 'chain_type', 'black_leather', 'propose_selection', 'metal', ['white_gold'])]
        session = self.session(rules, state={'chain_type': 'black_leather', 'metal': 'yellow_gold'})
        self.assertEqual(session.state['metal'], 'white_gold')

    def test_hook_beats_proposal(self):
        rules = [make_rule(1, 'chain_type', 'black_leather', 'propose_selection', 'metal', ['white_gold'])]
        session = self.session(rules, state={'chain_type': 'black_leather'},
                               hooks=[lambda state, result: {'metal': 'rose_gold'}])
        self.assertEqual(session.state['metal'], 'rose_gold')

    def test_hook_override_keeps_earlier_user_choice(self):
        rules = [make_rule(1, 'chain_type', 'black_leather', 'propose_selection', 'metal', ['white_gold'])]

        def ruby_wants_rose_gold(state, result):
            return {'metal': 'rose_gold'} if state.get('second_stone') == 'ruby' else {}

        session = self.session(rules, state={'chain_type': 'black_leather', 'second_stone': 'ruby',
                                             'metal': 'yellow_gold'}, hooks=[ruby_wants_rose_gold])
        self.assertEqual(session.state['metal'], 'rose_gold')
        self.assertEqual(session.user_choices['metal'], 'yellow_gold')
        self.assertEqual(session.consumed_proposals, {})

        session.select('chain_type', 'gold_cord')
        session.select('second_stone', 'emerald')
        self.assertEqual(session.state['metal'], 'yellow_gold')

    def test_seeded_consumed_proposal_is_not_reapplied(self):
        rules = [make_rule(1, 'second_stone', 'ruby', 'propose_selection', 'metal', ['yellow_gold'])]
        session = self.session(rules, state={'second_stone': 'ruby', 'metal': 'white_gold'},
                               consumed_proposals={'metal': 'yellow_gold'})
        self.assertEqual(session.state['metal'], 'white_gold')
        self.assertEqual(session.consumed_proposals, {'metal': 'yellow_gold'})

    def test_consumed_proposal_is_forgotten_when_rule_stops_firing(self):
        rules = [make_rule(1, 'second_stone', 'ruby', 'propose_selection', 'metal', ['yellow_gold'])]
        session = self.session(rules, state={'second_stone': 'emerald', 'metal': 'white_gold'},
                               consumed_proposals={'metal': 'yellow_gold'})
        self.assertEqual(session.consumed_proposals, {})

    def test_auto_select_beats_hook(self):
        rules = [make_rule(1, 'chain_type', 'gold_cord', 'auto_select', 'metal', ['yellow_gold'])]
        session = self.session(rules, state={'chain_type': 'gold_cord'},
                               hooks=[lambda state, result: {'metal': 'rose_gold'}])
        self.assertEqual(session.state['metal'], 'yellow_gold')

    def test_unavailable_proposal_is_ignored(self):
        rules = [
            make_rule(1, 'chain_type', 'gold_cord', 'exclude_options', 'metal', ['rose_gold']),
            make_rule(2, 'chain_type', 'gold_cord', 'propose_selection', 'metal', ['rose_gold']),
        ]
        session = self.session(rules, state={'chain_type': 'gold_cord', 'metal': 'white_gold'})
        self.assertEqual(session.state['metal'], 'white_gold')

    def test_clear_unavailable_selections_hook(self):
        rules = [make_rule(1, 'chain_type', 'gold_cord', 'exclude_options', 'metal', ['rose_gold'])]
        session = self.session(rules, state={'chain_type': 'gold_cord', 'metal': 'rose_gold', 'engraving': 'JD'},
                               hooks=[clear_unavailable_selections])
        self.assertNotIn('metal', session.state)
        self.assertEqual(session.state['engraving'], 'JD')

    def test_default_selections_hook(self):
        session = self.session(state={'metal': 'yellow_gold'},
                               hooks=[default_selections({'metal': 'white_gold', 'second_stone': 'emerald',
                                                          'chain_type': 'silk'})])
        self.assertEqual(session.state, {'metal': 'yellow_gold', 'second_stone': 'emerald'})

    def test_non_converging_hooks_are_cut_off(self):
        calls = itertools.count()

        def flip(state, result):
            return {'metal': 'white_gold' if next(calls) % 2 else 'yellow_gold'}

        with self.assertLogs('backend.customization.session', level='WARNING') as logs:
            self.session(hooks=[flip])
        self.assertIn('did not settle', logs.output[0])

    def test_stale_image_lookup_is_dropped(self):
        session = self.session(state={'metal': 'white_gold'})
        generation = session.begin_image_lookup()

        session.select('metal', 'yellow_gold')

        self.assertFalse(session.publish_image(generation, 'https://cdn.test/old.webp'))
        self.assertIsNone(session.image_url)
        self.assertTrue(session.publish_image(session.begin_image_lookup(), 'https://cdn.test/new.webp'))
        self.assertEqual(session.image_url, 'https://cdn.test/new.webp')

    def test_resolve_variant_image_passes_image_options(self):
        session = self.session(state={'chain_type': 'gold_cord', 'metal': 'white_gold', 'engraving': 'JD'})
        seen = []

        def resolver(options):
            seen.append(options)
            return 'https://cdn.test/variant.webp'

        self.assertTrue(session.resolve_variant_image(resolver))
        self.assertEqual(seen, [[('chain_type', 'gold_cord'), ('metal', 'white_gold')]])
        self.assertEqual(session.image_url, 'https://cdn.test/variant.webp')

    def test_total_price_uses_rule_multipliers(self):
        rules = [make_rule(1, 'chain_type', 'gold_cord', 'set_price_multiplier', 'metal', price_multiplier='2')]
        item = SimpleNamespace(base_price=Decimal('100'), base_price_lab_grown=None,
                               black_onyx_base_price=None, black_onyx_base_price_lab_grown=None)
        session = self.session(rules, state={'chain_type': 'gold_cord', 'metal': 'yellow_gold'})
        self.assertEqual(session.total_price(item), Decimal('180.00'))


class CustomizationAPITests(TestCase):
    """Test storefront and admin customization endpoints"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()
        self.item = TestDataFactory.create_jewelry_item(type='necklace', base_price=Decimal('200.00'))
        TestDataFactory.create_options(self.item, 'chain_type', ['black_leather', 'gold_cord'], setting_display_order=0)
        TestDataFactory.create_options(self.item, 'metal', ['white_gold', 'yellow_gold'], setting_display_order=1,
                                       price=Decimal('50.00'))
        TestDataFactory.create_rule(self.item, 'chain_type', 'gold_cord', 'exclude_options', 'metal', ['white_gold'],
                                    rule_name='Cord is yellow only')

    def test_configuration_endpoint(self):
        response = self.client.get(f'/api/v1/customization/items/{self.item.slug}/configuration/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([setting['id'] for setting in response.data['settings']], ['chain_type', 'metal'])

    def test_configuration_endpoint_missing_item(self):
        response = self.client.get('/api/v1/customization/items/nope/configuration/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    @mock.patch('backend.customization.evaluation.resolve_variant_image', return_value='https://cdn.test/variant.webp')
    def test_evaluate_endpoint(self, mocked_resolve):
        response = self.client.post(
            f'/api/v1/customization/items/{self.item.slug}/evaluate/',
            {'state': {'chain_type': 'gold_cord', 'metal': 'white_gold'}, 'apply_defaults': False},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        metal = next(setting for setting in response.data['filtered_settings'] if setting['id'] == 'metal')
        self.assertEqual([option['id'] for option in metal['options']], ['yellow_gold'])
        self.assertNotIn('metal', response.data['state'])
        self.assertEqual(response.data['state']['diamond_type'], 'natural')
        self.assertEqual(response.data['total_price'], '200.00')
        self.assertEqual(response.data['variant_filename'], 'necklace-gold_cord.webp')
        self.assertEqual(response.data['image_url'], 'https://cdn.test/variant.webp')
        self.assertTrue(response.data['applied_rules'][0]['applied'])

    @mock.patch('backend.customization.evaluation.resolve_variant_image', return_value=None)
    def test_evaluate_endpoint_applies_defaults(self, mocked_resolve):
        response = self.client.post(f'/api/v1/customization/items/{self.item.slug}/evaluate/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['state']['chain_type'], 'black_leather')
        self.assertEqual(response.data['state']['metal'], 'white_gold')
        self.assertEqual(response.data['total_price'], '250.00')

    @mock.patch('backend.customization.evaluation.resolve_variant_image', return_value=None)
    def test_shopper_overrides_proposal_on_next_evaluation(self, mocked_resolve):
        TestDataFactory.create_rule(self.item, 'chain_type', 'black_leather', 'propose_selection', 'metal',
                                    ['yellow_gold'], rule_name='Leather suggests yellow gold')
        url = f'/api/v1/customization/items/{self.item.slug}/evaluate/'

        response = self.client.post(url, {
            'state': {'chain_type': 'black_leather', 'metal': 'white_gold'}, 'apply_defaults': False,
        }, format='json')
        self.assertEqual(response.data['state']['metal'], 'yellow_gold')
        self.assertEqual(response.data['consumed_proposals'], {'metal': 'yellow_gold'})

        response = self.client.post(url, {
            'state': {'chain_type': 'black_leather', 'metal': 'white_gold'}, 'apply_defaults': False,
            'consumed_proposals': response.data['consumed_proposals'],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['state']['metal'], 'white_gold')
        self.assertEqual(response.data['consumed_proposals'], {'metal': 'yellow_gold'})

    def test_option_endpoints_require_admin(self):
        url = f'/api/v1/customization/items/{self.item.id}/options/'
        self.assertEqual(self.client.get(url).status_code, status.HTTP_401_UNAUTHORIZED)

        self.client.authenticate_user(TestDataFactory.create_user())
        self.assertEqual(self.client.get(url).status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_creates_and_updates_option(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post(f'/api/v1/customization/items/{self.item.id}/options/', {
            'setting_id': 'metal', 'setting_title': 'Metal', 'option_id': 'rose_gold',
            'option_name': 'Rose Gold', 'price': '55.00', 'filename_slug': 'rosegold',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        option_id = response.data['id']
        response = self.client.patch(f'/api/v1/customization/options/{option_id}/', {'price': '60.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['price'], '60.00')

        response = self.client.patch(f'/api/v1/customization/options/{option_id}/', {'price': '-1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_rule_validation(self):
        self.client.authenticate_user(self.admin)
        url = f'/api/v1/customization/items/{self.item.id}/rules/'

        response = self.client.post(url, {
            'rule_name': 'Bad', 'condition_setting_id': 'chain_type', 'condition_option_id': 'gold_cord',
            'action_type': 'teleport', 'target_setting_id': 'metal',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(url, {
            'rule_name': 'Missing targets', 'condition_setting_id': 'chain_type', 'condition_option_id': 'gold_cord',
            'action_type': 'exclude_options', 'target_setting_id': 'metal', 'target_option_ids': [],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(url, {
            'rule_name': 'Cord premium', 'condition_setting_id': 'chain_type', 'condition_option_id': 'gold_cord',
            'action_type': 'set_price_multiplier', 'target_setting_id': 'metal', 'price_multiplier': '1.250',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_rules_summary_endpoint(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get(f'/api/v1/customization/items/{self.item.id}/rules/summary/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['summary'], [
            '"Cord is yellow only": When chain_type = gold_cord, hide [white_gold] from metal'
        ])

    def test_variants_endpoint(self):
        self.client.authenticate_user(self.admin)
        storage = FakeStorage(files=['necklace-gold_cord-yellow_gold.webp'])
        with mock.patch('backend.customization.variant_generator.get_storage', return_value=storage):
            response = self.client.get(f'/api/v1/customization/items/{self.item.id}/variants/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_variants'], 3)
        self.assertEqual(response.data['existing_images'], 1)

    def test_variants_endpoint_database_failure(self):
        self.client.authenticate_user(self.admin)
        with mock.patch('backend.customization.variant_generator.get_active_option_rows',
                        side_effect=DatabaseError('down')):
            response = self.client.get(f'/api/v1/customization/items/{self.item.id}/variants/')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)

    def test_filename_mapping_refresh(self):
        TestDataFactory.create_option(self.item, 'chain_type', 'silk', filename_slug='silk-cord')
        self.client.authenticate_user(self.admin)

        response = self.client.post('/api/v1/customization/filename-mappings/necklace/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['mappings'], [
            {'option_id': 'silk', 'filename_slug': 'silk-cord', 'setting_id': 'chain_type'}
        ])

        response = self.client.get('/api/v1/customization/filename-mappings/anklet/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_filename_mapping_validation(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/customization/filename-mappings/necklace/validate/', {
            'options': [{'setting_id': 'metal', 'option_id': 'white_gold'}],
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_valid'])
        self.assertEqual(response.data['missing'], ['white_gold'])
        self.assertEqual(response.data['filename'], 'necklace-white_gold.webp')


class ManagementCommandTests(TestCase):
    """Test the variant and filename mapping commands"""

    def setUp(self):
        cache.clear()
        self.item = TestDataFactory.create_jewelry_item(type='bracelet', slug='tennis-bracelet', name='Tennis')
        TestDataFactory.create_options(self.item, 'second_stone', ['emerald', 'ruby'], filename_slug='')
        TestDataFactory.create_option(self.item, 'metal', 'white_gold', setting_display_order=1,
                                      filename_slug='whitegold')

    def test_refresh_filename_mappings(self):
        out = StringIO()
        call_command('refresh_filename_mappings', 'bracelet', stdout=out)
        self.assertIn('bracelet: 1 filename mappings loaded', out.getvalue())

    def test_refresh_all_types(self):
        out = StringIO()
        call_command('refresh_filename_mappings', stdout=out)
        self.assertIn('necklace: 0 filename mappings loaded', out.getvalue())
        self.assertIn('bracelet: 1 filename mappings loaded', out.getvalue())

    def test_refresh_unknown_type(self):
        with self.assertRaises(CommandError):
            call_command('refresh_filename_mappings', 'anklet')

    def test_generate_variants(self):
        storage = FakeStorage(files=['bracelet-ruby-whitegold.webp'])
        out = StringIO()
        with mock.patch('backend.customization.variant_generator.get_storage', return_value=storage):
            call_command('generate_variants', 'tennis-bracelet', '--missing-only', stdout=out)

        output = out.getvalue()
        self.assertIn('bracelet-emerald-whitegold.webp', output)
        self.assertNotIn('bracelet-ruby-whitegold.webp', output)
        self.assertIn('Tennis: 2 variants, 1 with pictures, 1 missing', output)

    def test_generate_variants_unknown_item(self):
        with self.assertRaises(CommandError):
            call_command('generate_variants', '99999')
