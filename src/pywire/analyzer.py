"""
Per-module driver: discovers injectors and produces the generated module.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .config import WireConfig
from .initializer import Initializer, find_initializers
from .resolver import Resolver
from .synthesizer import CodeSynthesizer, ImportTable
from .typemodel.session import AnalysisSession

logger = logging.getLogger(__name__)


def wire_output_path(path: Path | str, suffix: str = "_gen") -> Path:
    """Insert `suffix` before the extension: `pkg/app.py` -> `pkg/app_gen.py`."""
    path = Path(path)
    return path.with_name(f"{path.stem}{suffix}{path.suffix}")


class InjectionAnalyzer:
    """
    Generates the wiring module for source files of one analysis session.

    The whole module text is produced before anything is written, so a failing
    injector leaves no partial output behind.
    """

    def __init__(self, session: AnalysisSession, config: WireConfig | None = None):
        super().__init__()
        self._session = session
        self._config = config or WireConfig()
        self._resolver = Resolver(session.type_model, strict=self._config.strict)
        self._synthesizer = CodeSynthesizer(
            session.type_model,
            line_length=self._config.line_length,
            header=self._config.header,
        )

    @property
    def config(self) -> WireConfig:
        return self._config

    def find_initializers(self, path: Path | str) -> list[Initializer]:
        module = self._session.module_for_path(path)
        return find_initializers(module, self._session.type_model, self._config.marker)

    def code_for(self, path: Path | str) -> str | None:
        """
        Generate the wiring module for `path`.

        Returns:
            The module text, or None if the file declares no injectors.

        Raises:
            WiringError: If any injector cannot be resolved.
        """
        module = self._session.module_for_path(path)
        initializers = self.find_initializers(path)
        if not initializers:
            logger.warning("%s: no injectors found, skipping", module.path)
            return None

        imports = ImportTable()
        functions = []
        for initializer in initializers:
            providers = initializer.linearized_providers(self._resolver)
            functions.append(self._synthesizer.synthesize(initializer, providers, imports))

        return self._synthesizer.render_module(module.name, functions, imports)

    def write_code(self, path: Path | str, output: Path | str | None = None) -> Path | None:
        """
        Generate and write the wiring module for `path`.

        Returns:
            The path written, or None if the file declares no injectors.
        """
        code = self.code_for(path)
        if code is None:
            return None

        target = Path(output) if output is not None else wire_output_path(path, self._config.output_suffix)
        target.write_text(code, encoding="utf-8")
        logger.info("Wrote %s", target)
        return target
