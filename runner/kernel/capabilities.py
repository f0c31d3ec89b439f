"""
Runner Kernel - Capability Registry

The curated set of named values offered to executed component code in place
of real module imports. Three providers:

  runtime  host runtime primitives (state, effects, refs, memoization, context)
  charts   charting primitives, always offered in full
  icons    icon components, offered only when the code imports them

A namespace value is a reference expression into the host runtime object
(`__host`); the executor binds each one to a parameter of the same name.
Both the in-process prelude and the browser preview page define `__host`.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

CAPABILITY_VERSION = "2024.2"

HOST_OBJECT = "__host"

# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------

RUNTIME_PROVIDER = "runtime"
ICON_PROVIDER = "icons"
CHART_PROVIDER = "charts"

RUNTIME_SOURCES: frozenset[str] = frozenset({"react", "react-dom", "react-dom/client"})
ICON_SOURCE = "lucide-react"
CHART_SOURCE = "recharts"

RUNTIME_PRIMITIVES: tuple[str, ...] = (
    "useState",
    "useEffect",
    "useLayoutEffect",
    "useRef",
    "useMemo",
    "useCallback",
    "useContext",
    "useReducer",
)

CHART_NAMES: tuple[str, ...] = (
    "ResponsiveContainer",
    "LineChart",
    "Line",
    "BarChart",
    "Bar",
    "AreaChart",
    "Area",
    "PieChart",
    "Pie",
    "Cell",
    "ScatterChart",
    "Scatter",
    "ComposedChart",
    "RadarChart",
    "Radar",
    "RadialBarChart",
    "RadialBar",
    "PolarGrid",
    "PolarAngleAxis",
    "PolarRadiusAxis",
    "XAxis",
    "YAxis",
    "ZAxis",
    "CartesianGrid",
    "Tooltip",
    "Legend",
    "Brush",
    "ReferenceLine",
    "ReferenceArea",
    "ReferenceDot",
    "Label",
    "LabelList",
    "Treemap",
    "FunnelChart",
    "Funnel",
)

ICON_DATA = Path(__file__).parent / "data" / "lucide-icons.txt"


def load_icon_names(path: Path = ICON_DATA) -> tuple[str, ...]:
    """Icon export names from a packaged list, one per line; `#` starts a comment line."""
    names = []
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            names.append(line)
    return tuple(names)


ICON_NAMES: tuple[str, ...] = load_icon_names()


@dataclass(frozen=True)
class Capability:
    """One named value: its provider and the host reference it is bound to."""

    name: str
    provider: str
    reference: str


# ---------------------------------------------------------------------------
# Namespace
# ---------------------------------------------------------------------------


class CapabilityNamespace(Mapping[str, str]):
    """
    Ordered, read-only `name → reference` mapping handed to the executor.

    Key order is the parameter order of the executed factory.
    """

    def __init__(
        self,
        capabilities: Iterable[Capability],
        unresolved: Mapping[str, str] | None = None,
    ) -> None:
        # local name → imported icon name, for icon imports the registry does not have
        self.unresolved: dict[str, str] = dict(unresolved or {})
        self._entries: dict[str, Capability] = {}
        for capability in capabilities:
            # Later providers win on a name clash (an imported icon named like a chart part)
            self._entries.pop(capability.name, None)
            self._entries[capability.name] = capability

    def __getitem__(self, name: str) -> str:
        return self._entries[name].reference

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def provider_of(self, name: str) -> str | None:
        entry = self._entries.get(name)
        return entry.provider if entry else None

    def names(self, provider: str) -> list[str]:
        return [c.name for c in self._entries.values() if c.provider == provider]

    def __repr__(self) -> str:
        return f"CapabilityNamespace({list(self._entries)!r})"


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class CapabilityRegistry:
    """
    The static capability set, built once per host session.

    `build()` filters it per render to what the transformer found referenced.
    """

    def __init__(
        self,
        icon_names: Iterable[str] = ICON_NAMES,
        chart_names: Iterable[str] = CHART_NAMES,
        version: str = CAPABILITY_VERSION,
    ) -> None:
        self.version = version
        self.icon_names: tuple[str, ...] = tuple(icon_names)
        self.chart_names: tuple[str, ...] = tuple(chart_names)
        self._icons = {name: Capability(name, ICON_PROVIDER, f"{HOST_OBJECT}.Icons.{name}") for name in self.icon_names}
        self._base: list[Capability] = [Capability("React", RUNTIME_PROVIDER, f"{HOST_OBJECT}.React")]
        self._base.extend(
            Capability(name, RUNTIME_PROVIDER, f"{HOST_OBJECT}.React.{name}") for name in RUNTIME_PRIMITIVES
        )
        self._base.extend(
            Capability(name, CHART_PROVIDER, f"{HOST_OBJECT}.Charts.{name}") for name in self.chart_names
        )

    def build(self, referenced: Iterable[str] | Mapping[str, str] = ()) -> CapabilityNamespace:
        """
        Runtime primitives and every chart export, plus the referenced icons.

        `referenced` is either icon names, or a `local → imported` mapping
        when the code binds icons under other names; each icon is bound under
        its local name only, so an aliased icon never hides a chart part.
        An imported name of "*" binds the whole icon set.

        Unknown names are omitted; they surface later as missing capabilities.
        """
        if isinstance(referenced, Mapping):
            bindings = dict(referenced)
        else:
            bindings = {name: name for name in referenced}

        icons: list[Capability] = []
        unresolved: dict[str, str] = {}
        for local in sorted(bindings):
            imported = bindings[local]
            if imported == "*":
                icons.append(Capability(local, ICON_PROVIDER, f"{HOST_OBJECT}.Icons"))
                continue
            name = self.resolve_icon(imported)
            if name is None:
                unresolved[local] = imported
            elif local == name:
                icons.append(self._icons[name])
            else:
                icons.append(Capability(local, ICON_PROVIDER, self._icons[name].reference))
        return CapabilityNamespace([*self._base, *icons], unresolved=unresolved)

    def resolve_icon(self, name: str) -> str | None:
        """
        Registered icon behind an export name.

        Besides the plain name, the package exports every icon as
        `<Name>Icon` and as `Lucide<Name>`.
        """
        if name in self._icons:
            return name
        if name.endswith("Icon") and name[: -len("Icon")] in self._icons:
            return name[: -len("Icon")]
        if name.startswith("Lucide") and name[len("Lucide") :] in self._icons:
            return name[len("Lucide") :]
        return None

    def has_icon(self, name: str) -> bool:
        return self.resolve_icon(name) is not None


@lru_cache(maxsize=1)
def default_registry() -> CapabilityRegistry:
    """Session-wide registry over the built-in icon and chart sets."""
    return CapabilityRegistry()
