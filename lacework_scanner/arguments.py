"""Command line construction for ``lw-scanner image evaluate``."""

from __future__ import annotations

import re
import shlex
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from pydantic import SecretStr

from lacework_scanner.models import CredentialOverrides, ScanOptions

MASK = "******"
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True, slots=True)
class PlainToken:
    value: str

    def render(self) -> str:
        return shlex.quote(self.value)


@dataclass(frozen=True, slots=True)
class SecretToken:
    value: str

    def render(self) -> str:
        return MASK

    def __repr__(self) -> str:
        return f"SecretToken({MASK!r})"


Token = Union[PlainToken, SecretToken]


class Argv:
    """Ordered argument list that knows which tokens must never be logged.

    ``str(argv)`` is safe to print; only :meth:`to_command` exposes secret
    values and it is meant for the process launcher alone.
    """

    def __init__(self) -> None:
        self._tokens: list[Token] = []

    def add(self, *values: str | None) -> Argv:
        # None is dropped rather than rendered, mirroring how CI argument
        # builders treat unset values.
        for value in values:
            if value is not None:
                self._tokens.append(PlainToken(value))
        return self

    def add_masked(self, value: str | SecretStr | None) -> Argv:
        if value is None:
            return self
        if isinstance(value, SecretStr):
            value = value.get_secret_value()
        self._tokens.append(SecretToken(value))
        return self

    def add_tokenized(self, text: str) -> Argv:
        try:
            values = shlex.split(text)
        except ValueError:
            # Unbalanced quotes, e.g. an apostrophe in a tag value.
            values = text.split()
        for value in values:
            self._tokens.append(PlainToken(value))
        return self

    @property
    def tokens(self) -> tuple[Token, ...]:
        return tuple(self._tokens)

    def to_command(self) -> list[str]:
        return [token.value for token in self._tokens]

    def __iter__(self) -> Iterator[Token]:
        return iter(self._tokens)

    def __len__(self) -> int:
        return len(self._tokens)

    def __str__(self) -> str:
        return " ".join(token.render() for token in self._tokens)

    def __repr__(self) -> str:
        return f"Argv({str(self)!r})"


def normalize_build_plan(build_plan: str | None) -> str | None:
    """Strip every whitespace run from a job name so it forms a single token."""
    if build_plan is None:
        return None
    return _WHITESPACE.sub("", build_plan.strip())


def build_arguments(
    options: ScanOptions,
    html_file: Path,
    overrides: CredentialOverrides | None = None,
    binary: str = "lw-scanner",
) -> Argv:
    overrides = overrides or CredentialOverrides()
    args = Argv()
    args.add(binary, "image", "evaluate", options.image_name, options.image_tag)

    if not overrides.account_name_present:
        args.add("--account-name", options.account_name)
    if not overrides.access_token_present:
        args.add("--access-token")
        args.add_masked(options.access_token)

    args.add("--build-id", options.build_id)
    args.add("--build-plan", normalize_build_plan(options.build_plan))

    args.add("--html")
    args.add("--html-file", str(Path(html_file).absolute()))

    if options.fixable_only:
        args.add("--fixable")
    if options.no_pull:
        args.add("--no-pull")
    if options.evaluate_policies:
        args.add("--policy")
    if options.save_to_lacework:
        args.add("--save")
    if options.scan_library_packages:
        args.add("--scan-library-packages")

    if options.tags:
        args.add("--tags", options.tags)

    if options.custom_flags:
        args.add_tokenized(options.custom_flags)

    return args
