from pathlib import Path

import astroid
from astroid.builder import AstroidBuilder

from pydemeter.domain.errors import ParseError
from pydemeter.domain.protocols import AstroidProtocol


class AstroidGateway(AstroidProtocol):
    """
    Parsing gateway. Every call builds a fresh tree so repeated analysis of
    an unchanged file sees identical input.
    """

    def __init__(self) -> None:
        self._builder = AstroidBuilder(astroid.MANAGER)

    def parse_file(self, file_path: str) -> astroid.nodes.Module:
        """Parse a file and return the astroid Module node."""
        path = Path(file_path)
        if not path.is_file():
            raise ParseError(file_path, "no such file")
        try:
            return self._builder.file_build(str(path), self._module_name(path))
        except astroid.AstroidBuildingError as exc:
            raise ParseError(file_path, str(exc)) from exc

    def parse_directory(self, dir_path: str) -> dict[str, astroid.nodes.Module]:
        """Parse every .py file directly inside dir_path, in filename order."""
        directory = Path(dir_path)
        if not directory.is_dir():
            raise ParseError(dir_path, "no such directory")
        modules: dict[str, astroid.nodes.Module] = {}
        for path in sorted(directory.glob("*.py")):
            if path.is_file():
                modules[str(path)] = self.parse_file(str(path))
        return modules

    @staticmethod
    def _module_name(path: Path) -> str:
        """Qualify with the package name when the directory is a package, so relative imports resolve."""
        if (path.parent / "__init__.py").is_file():
            if path.name == "__init__.py":
                return path.parent.name
            return f"{path.parent.name}.{path.stem}"
        return path.stem
