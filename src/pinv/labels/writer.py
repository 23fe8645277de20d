"""Where filled labels go.

A filled label is a plain ``.svg`` file. Relative output paths must stay
inside the working directory (or an explicit base); absolute paths are taken
as given. The file is staged next to its target and renamed into place, so a
reader never sees a half-written label.
"""

from __future__ import annotations

import tempfile
from dataclasses import dataclass
from pathlib import Path

import typer

from pinv.errors import PinvValidationError

SVG_SUFFIX = ".svg"


@dataclass(frozen=True)
class LabelOutput:
    """A validated destination for one filled label or key sheet."""

    path: Path

    @classmethod
    def from_arg(cls, output: str | Path, base: Path | None = None) -> LabelOutput:
        """Validate a user-supplied output path.

        Raises:
            PinvValidationError: If the name does not end in ``.svg``, or a
                relative path climbs out of *base* (default: CWD).
        """
        requested = Path(output)
        if requested.suffix.lower() != SVG_SUFFIX:
            raise PinvValidationError(
                f"Label output '{output}' must be an {SVG_SUFFIX} file", output=str(output)
            )
        if requested.is_absolute():
            return cls(requested.resolve())

        root = (base or Path.cwd()).resolve()
        target = (root / requested).resolve()
        if root not in target.parents:
            raise PinvValidationError(
                f"Label output '{output}' resolves outside '{root}'. "
                "Path traversal is not permitted.",
                output=str(output),
                base=str(root),
            )
        return cls(target)

    def may_write(self, *, yes: bool) -> bool:
        """False only when the target exists and the user declines to replace it."""
        if yes or not self.path.exists():
            return True
        return typer.confirm(f"  {self.path.name} already exists. Replace it?", default=False)

    def write(self, content: bytes) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        staged: Path | None = None
        try:
            with tempfile.NamedTemporaryFile(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".part", delete=False
            ) as handle:
                staged = Path(handle.name)
                handle.write(content)
            staged.replace(self.path)
        except BaseException:
            if staged is not None:
                staged.unlink(missing_ok=True)
            raise
