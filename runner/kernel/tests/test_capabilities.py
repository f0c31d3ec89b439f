"""
Runner Kernel -- Capability Namespace Tests
"""

from runner.kernel.capabilities import (
    CAPABILITY_VERSION,
    CHART_NAMES,
    RUNTIME_PRIMITIVES,
    CapabilityRegistry,
    default_registry,
)


def test_base_namespace_has_runtime_and_charts():
    namespace = default_registry().build()
    assert list(namespace)[: 1 + len(RUNTIME_PRIMITIVES)] == ["React", *RUNTIME_PRIMITIVES]
    for name in CHART_NAMES:
        assert name in namespace
    assert namespace.names("icons") == []


def test_referenced_icons_are_added_sorted():
    namespace = default_registry().build({"Rocket", "Camera"})
    assert namespace.names("icons") == ["Camera", "Rocket"]
    assert namespace["Camera"] == "__host.Icons.Camera"
    assert list(namespace)[-2:] == ["Camera", "Rocket"]


def test_unknown_names_are_omitted():
    namespace = default_registry().build({"NotAnIcon"})
    assert "NotAnIcon" not in namespace


def test_icon_wins_over_chart_with_same_name():
    """PieChart is both a chart part and an icon; importing the icon binds the icon."""
    namespace = default_registry().build({"PieChart"})
    assert namespace["PieChart"] == "__host.Icons.PieChart"
    assert namespace.provider_of("PieChart") == "icons"
    assert list(namespace).count("PieChart") == 1


def test_without_the_icon_the_chart_stays():
    namespace = default_registry().build()
    assert namespace["PieChart"] == "__host.Charts.PieChart"


def test_references_point_into_host():
    namespace = default_registry().build()
    assert namespace["React"] == "__host.React"
    assert namespace["useState"] == "__host.React.useState"
    assert namespace["LineChart"] == "__host.Charts.LineChart"


def test_registry_is_built_once_per_session():
    assert default_registry() is default_registry()
    assert default_registry().version == CAPABILITY_VERSION


def test_custom_icon_set():
    registry = CapabilityRegistry(icon_names=["Alpha"], chart_names=[])
    assert registry.has_icon("Alpha")
    assert not registry.has_icon("Camera")
    assert list(registry.build({"Alpha", "Camera"})) == ["React", *RUNTIME_PRIMITIVES, "Alpha"]


def test_packaged_icon_set_is_complete():
    registry = default_registry()
    assert len(registry.icon_names) > 1000
    assert len(set(registry.icon_names)) == len(registry.icon_names)
    for name in ("Calculator", "Coffee", "ShoppingBag", "Store", "Edit3", "Camera"):
        assert registry.has_icon(name)


def test_icon_export_variants_resolve_to_the_same_icon():
    registry = default_registry()
    assert registry.resolve_icon("CoffeeIcon") == "Coffee"
    assert registry.resolve_icon("LucideCoffee") == "Coffee"
    assert registry.resolve_icon("Coffee") == "Coffee"
    assert registry.resolve_icon("Icon") is None
    namespace = registry.build({"CoffeeIcon": "CoffeeIcon"})
    assert namespace["CoffeeIcon"] == "__host.Icons.Coffee"


def test_aliased_icon_is_bound_under_its_local_name_only():
    namespace = default_registry().build({"PieIcon": "PieChart"})
    assert namespace["PieIcon"] == "__host.Icons.PieChart"
    assert namespace.provider_of("PieIcon") == "icons"
    assert namespace["PieChart"] == "__host.Charts.PieChart"


def test_icon_namespace_import_binds_the_host_icons():
    namespace = default_registry().build({"Icons": "*"})
    assert namespace["Icons"] == "__host.Icons"


def test_unknown_icons_are_kept_as_unresolved():
    namespace = default_registry().build({"Nope": "NotAnIcon", "Camera": "Camera"})
    assert "Nope" not in namespace
    assert namespace.unresolved == {"Nope": "NotAnIcon"}
