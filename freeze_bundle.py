#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

import marshal
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from freeze_compiler import CompiledUnit
from freeze_diagnostics import DuplicateModuleError, RelatedLocation
from freeze_invocation import Span

DEFAULT_BUNDLE_VARIABLE = "FROZEN_MODULES"


@dataclass(frozen=True)
class FrozenModule:
    code: bytes = field(repr=False)
    package: bool = False


@dataclass
class FrozenBundle:
    """
    The final mapping from qualified name to frozen module.

    Iteration follows sorted name order so serialized output is reproducible.
    """
    modules: Dict[str, FrozenModule] = field(default_factory=dict)

    def __contains__(self, name: str) -> bool:
        return name in self.modules

    def __len__(self) -> int:
        return len(self.modules)

    def __getitem__(self, name: str) -> FrozenModule:
        return self.modules[name]

    def names(self) -> List[str]:
        return sorted(self.modules)

    def items(self) -> Iterator[Tuple[str, FrozenModule]]:
        for name in self.names():
            yield name, self.modules[name]

    def packages(self) -> List[str]:
        return [name for name, mod in self.items() if mod.package]


class BundleAssembler:
    """
    Collects compiled units into a FrozenBundle.

    This is the one place where qualified names are checked for uniqueness:
    adding a name twice raises DuplicateModuleError naming both origins.
    """

    def __init__(self, *, span: Optional[Span] = None, filename: Optional[str] = None):
        self.span = span
        self.filename = filename
        self._modules: Dict[str, FrozenModule] = {}
        self._origins: Dict[str, Optional[Path]] = {}

    def __len__(self) -> int:
        return len(self._modules)

    def add(
        self,
        name: str,
        unit: CompiledUnit,
        *,
        is_package: bool = False,
        origin: Optional[Path] = None,
    ) -> None:
        if name in self._modules:
            first = self._origins[name]
            raise DuplicateModuleError(
                f"[BND-0010] duplicate module name '{name}': "
                f"'{origin or '<inline>'}' collides with '{first or '<inline>'}'",
                span=self.span,
                filename=self.filename,
                module_name=name,
                related=RelatedLocation(
                    f"'{name}' first defined here",
                    filename=str(first) if first is not None else None,
                    module_name=name,
                ),
            )
        self._modules[name] = FrozenModule(code=unit.code, package=is_package)
        self._origins[name] = origin

    def finish(self) -> FrozenBundle:
        return FrozenBundle(modules={name: self._modules[name] for name in sorted(self._modules)})


def bundle_mapping(bundle: FrozenBundle) -> Dict[str, Tuple[bytes, bool]]:
    return {name: (mod.code, mod.package) for name, mod in bundle.items()}


def render_python_module(bundle: FrozenBundle, variable: str = DEFAULT_BUNDLE_VARIABLE) -> str:
    """
    Render the bundle as Python source defining
    `variable = {name: (marshalled_code, is_package), ...}`.
    """
    if not variable.isidentifier():
        raise ValueError(f"'{variable}' is not a valid Python identifier")
    lines = [
        "# Generated by freezec. Do not edit.",
        f"{variable} = {{",
    ]
    for name, mod in bundle.items():
        lines.append(f"    {name!r}: ({mod.code!r}, {mod.package!r}),")
    lines.append("}")
    return "\n".join(lines) + "\n"


def dump_marshal(bundle: FrozenBundle) -> bytes:
    """Serialize the bundle as marshal bytes of `{name: (code, is_package)}`."""
    return marshal.dumps(bundle_mapping(bundle))
