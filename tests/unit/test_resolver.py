from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

from nestconf.annotations import attach
from nestconf.declaration import NestedTestConfiguration, nested_test_configuration
from nestconf.enclosing import enclosing_class
from nestconf.resolver import (
    EnclosingConfigurationResolver,
    effective_mode,
    get_default_resolver,
    is_configuration_inherited,
)
from nestconf.types import EnclosingConfiguration

INHERIT = EnclosingConfiguration.INHERIT
OVERRIDE = EnclosingConfiguration.OVERRIDE


class TopLevel:
    pass


@nested_test_configuration(INHERIT)
class InheritingTopLevel:
    pass


class PlainOuter:
    class Inner:
        pass


@nested_test_configuration(INHERIT)
class InheritingOuter:
    class Inner:
        pass

    @nested_test_configuration(OVERRIDE)
    class OverridingInner:
        pass


@nested_test_configuration(OVERRIDE)
class OverridingOuter:
    @nested_test_configuration(INHERIT)
    class InheritingInner:
        pass


@nested_test_configuration(INHERIT)
class A:
    class B:
        class C:
            pass


@nested_test_configuration(INHERIT)
class A2:
    @nested_test_configuration(OVERRIDE)
    class B:
        class C:
            pass


class TestScenarios:
    def test_no_declarations_anywhere(self, resolver):
        assert resolver.is_configuration_inherited(PlainOuter.Inner) is False
        assert resolver.effective_mode(PlainOuter.Inner) is OVERRIDE

    def test_outer_inherit_inner_absent(self, resolver):
        assert resolver.is_configuration_inherited(InheritingOuter.Inner) is True

    def test_outer_inherit_inner_override(self, resolver):
        assert resolver.is_configuration_inherited(InheritingOuter.OverridingInner) is False

    def test_three_levels_nearest_explicit_is_outermost(self, resolver):
        assert resolver.is_configuration_inherited(A.B.C) is True
        assert resolver.is_configuration_inherited(A.B) is True

    def test_three_levels_nearest_explicit_is_middle(self, resolver):
        assert resolver.is_configuration_inherited(A2.B.C) is False
        assert resolver.effective_mode(A2.B.C) is OVERRIDE


class TestDecisionRule:
    def test_top_level_classes_never_inherit(self, resolver):
        assert resolver.is_configuration_inherited(TopLevel) is False
        assert resolver.is_configuration_inherited(InheritingTopLevel) is False

    def test_top_level_effective_mode_reflects_declaration(self, resolver):
        assert resolver.effective_mode(TopLevel) is OVERRIDE
        assert resolver.effective_mode(InheritingTopLevel) is INHERIT

    def test_explicit_inherit_on_class_wins_over_outer_override(self, resolver):
        assert resolver.is_configuration_inherited(OverridingOuter.InheritingInner) is True

    def test_resolution_records_deciding_class(self, resolver):
        resolution = resolver.resolve(A.B.C)
        assert resolution.mode is INHERIT
        assert resolution.declared_on is A
        assert resolution.enclosing is A.B

    def test_default_resolution_has_no_deciding_class(self, resolver):
        assert resolver.resolve(PlainOuter.Inner).declared_on is None

    def test_configured_default_mode_applies_only_without_declarations(self):
        resolver = EnclosingConfigurationResolver(default_mode=INHERIT)
        assert resolver.is_configuration_inherited(PlainOuter.Inner) is True
        assert resolver.is_configuration_inherited(PlainOuter) is False
        assert resolver.is_configuration_inherited(InheritingOuter.OverridingInner) is False

    def test_declaration_metadata_is_not_mutated(self, resolver):
        before = dict(vars(A.B))
        resolver.resolve(A.B.C)
        assert dict(vars(A.B)) == before


class TestCaching:
    def test_repeated_queries_do_not_rewalk_chain(self):
        lookup = MagicMock(wraps=enclosing_class)
        resolver = EnclosingConfigurationResolver(enclosing_lookup=lookup)

        first = resolver.is_configuration_inherited(A.B.C)
        second = resolver.is_configuration_inherited(A.B.C)
        resolver.effective_mode(A.B.C)
        resolver.is_configuration_inherited(A.B)
        resolver.is_configuration_inherited(A)

        assert first == second
        looked_up = [call.args[0] for call in lookup.call_args_list]
        assert sorted(looked_up, key=id) == sorted([A.B.C, A.B, A], key=id)

    def test_cached_ancestor_stops_the_climb(self):
        lookup = MagicMock(wraps=enclosing_class)
        resolver = EnclosingConfigurationResolver(enclosing_lookup=lookup)

        resolver.resolve(A2.B)
        lookup.reset_mock()
        resolver.resolve(A2.B.C)

        assert [call.args[0] for call in lookup.call_args_list] == [A2.B.C]

    def test_same_object_returned_for_same_class(self, resolver):
        assert resolver.resolve(InheritingOuter.Inner) is resolver.resolve(InheritingOuter.Inner)

    def test_concurrent_queries_agree(self, resolver):
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: resolver.resolve(A.B.C), range(64)))

        assert all(result is results[0] for result in results)
        assert results[0].inherited is True

    def test_fresh_resolvers_do_not_share_cache(self):
        first = EnclosingConfigurationResolver()
        second = EnclosingConfigurationResolver()
        first.resolve(A.B.C)

        assert A.B.C in first.cache
        assert A.B.C not in second.cache


class TestDegenerateChains:
    def test_cyclic_lookup_terminates(self):
        x = type("X", (), {})
        y = type("Y", (), {})
        parents = {x: y, y: x}
        resolver = EnclosingConfigurationResolver(enclosing_lookup=parents.get)

        assert resolver.is_configuration_inherited(x) is False
        assert resolver.effective_mode(y) is OVERRIDE

    def test_deep_chain_is_resolved_without_recursion(self):
        classes = [type(f"Level{i}", (), {}) for i in range(5000)]
        attach(classes[0], NestedTestConfiguration(INHERIT))
        parents = {inner: outer for outer, inner in zip(classes, classes[1:])}
        resolver = EnclosingConfigurationResolver(enclosing_lookup=parents.get)

        assert resolver.is_configuration_inherited(classes[-1]) is True
        assert resolver.resolve(classes[-1]).declared_on is classes[0]
        assert len(resolver.cache) == len(classes)

    def test_injected_mode_lookup_is_used(self):
        modes = {InheritingOuter.Inner: OVERRIDE}
        resolver = EnclosingConfigurationResolver(mode_lookup=modes.get)

        assert resolver.is_configuration_inherited(InheritingOuter.Inner) is False


def test_module_level_helpers_use_default_resolver():
    assert is_configuration_inherited(InheritingOuter.Inner) is True
    assert effective_mode(PlainOuter.Inner) is OVERRIDE
    assert InheritingOuter.Inner in get_default_resolver().cache


def test_default_resolver_reads_environment(monkeypatch):
    monkeypatch.setenv("NESTCONF_ENCLOSING_CONFIGURATION", "inherit")
    assert get_default_resolver().default_mode is INHERIT
    assert is_configuration_inherited(PlainOuter.Inner) is True


def test_concurrent_first_use_of_default_resolver_agrees():
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: is_configuration_inherited(A.B.C), range(32)))

    assert results == [True] * 32
    assert get_default_resolver() is get_default_resolver()


def test_resolver_enclosing_class_matches_resolution(resolver):
    assert resolver.enclosing_class(A.B.C) is A.B
    assert resolver.enclosing_class(A) is None
