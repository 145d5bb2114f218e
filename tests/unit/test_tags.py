from nestconf.annotations import compose
from nestconf.declaration import nested_test_configuration
from nestconf.resolver import EnclosingConfigurationResolver
from nestconf.tags import TagData, effective_tag_data, get_tag_data, merge_tag_data, tag
from nestconf.types import EnclosingConfiguration

INHERIT = EnclosingConfiguration.INHERIT
OVERRIDE = EnclosingConfiguration.OVERRIDE


@tag("checkout")
@tag.skip(reason="payments sandbox down")
@nested_test_configuration(INHERIT)
class Checkout:
    @tag("coupon")
    class WithCoupon:
        @tag.xfail(reason="rounding bug")
        class Expired:
            pass

    @nested_test_configuration(OVERRIDE)
    @tag("isolated")
    class Isolated:
        pass


@tag("catalog")
class Catalog:
    class Search:
        pass


def test_tag_decorator_records_metadata():
    @tag("slow", "llm")
    @tag.skip(reason="network down")
    @tag.xfail(reason="flaky", strict=True)
    def sample():
        pass

    data = get_tag_data(sample)
    assert data.tags == {"slow", "llm", "skip", "xfail"}
    assert data.skip_reason == "network down"
    assert data.xfail_reason == "flaky"
    assert data.xfail_strict is True


def test_tag_decorator_ignores_empty_names():
    @tag("", "fast")
    def sample():
        pass

    assert get_tag_data(sample).tags == {"fast"}


def test_default_reasons():
    @tag.skip()
    @tag.xfail()
    def sample():
        pass

    data = get_tag_data(sample)
    assert data.skip_reason == "skipped via tag"
    assert data.xfail_reason == "expected failure"
    assert data.xfail_strict is False


def test_get_tag_data_includes_superclasses():
    @tag("base")
    class Base:
        pass

    @tag("sub")
    class Sub(Base):
        pass

    assert get_tag_data(Sub).tags == {"base", "sub"}
    assert get_tag_data(Base).tags == {"base"}


def test_merge_tag_data_later_overrides():
    merged = merge_tag_data(
        TagData(tags={"a"}, skip_reason="first"),
        None,
        TagData(tags={"b"}, skip_reason="second", xfail_reason="x", xfail_strict=True),
    )
    assert merged.tags == {"a", "b"}
    assert merged.skip_reason == "second"
    assert merged.xfail_reason == "x"
    assert merged.xfail_strict is True


def test_effective_tags_flow_into_inheriting_classes(resolver):
    data = effective_tag_data(Checkout.WithCoupon.Expired, resolver)

    assert data.tags == {"checkout", "skip", "coupon", "xfail"}
    assert data.skip_reason == "payments sandbox down"
    assert data.xfail_reason == "rounding bug"


def test_override_keeps_only_own_tags(resolver):
    assert effective_tag_data(Checkout.Isolated, resolver).tags == {"isolated"}


def test_default_mode_keeps_only_own_tags(resolver):
    assert effective_tag_data(Catalog.Search, resolver).tags == set()


def test_configured_inherit_default_propagates_tags():
    resolver = EnclosingConfigurationResolver(default_mode=INHERIT)
    assert effective_tag_data(Catalog.Search, resolver).tags == {"catalog"}


def test_composed_annotation_carries_tags(resolver):
    smoke_suite = compose(tag("smoke"), nested_test_configuration(INHERIT), name="SmokeSuite")

    @smoke_suite
    class Suite:
        pass

    assert get_tag_data(Suite).tags == {"smoke"}
