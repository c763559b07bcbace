"""UK PAYE tax code parsing.

Supported forms, after stripping whitespace and upper-casing::

    [S|C]? ( BR | D0 | D1 | NT | 0T | K<digits> | <digits><L|M|N|P|T|Y> ) (W1|M1|X)?

``S`` selects the Scottish regime and ``C`` the Welsh one. The numeric part of
an allowance code is the allowance in tens of pounds (1257L = 12,570). K codes
carry a negative allowance that is added to taxable pay. A W1, M1 or X suffix
makes the code non-cumulative (emergency basis).
"""

from __future__ import annotations

import re

from paye_engine.calculators.types import ParsedTaxCode, TaxRegime

TAX_CODE_PATTERN = re.compile(
    r"^(?P<regime>[SC])?"
    r"(?:(?P<fixed>BR|D0|D1|NT|0T)|K(?P<k>\d{1,4})|(?P<num>\d{1,4})(?P<suffix>[LMNPTY]))"
    r"(?P<noncum>W1|M1|X)?$"
)

REGIME_PREFIXES = {
    None: TaxRegime.STANDARD,
    "S": TaxRegime.SCOTTISH,
    "C": TaxRegime.WELSH,
}

# Tax code numbers are in tens of pounds
ALLOWANCE_UNIT_PENCE = 1000


class InvalidTaxCodeError(ValueError):
    """Raised when a tax code does not match the supported grammar."""

    def __init__(self, code: object):
        self.code = code
        super().__init__(f"Invalid tax code: {code!r}")


def normalize_tax_code(code: str) -> str:
    """Strip all whitespace and upper-case."""
    return "".join(code.split()).upper()


def is_valid_tax_code(code: object) -> bool:
    """Check a tax code against the grammar without raising."""
    if not isinstance(code, str):
        return False
    return TAX_CODE_PATTERN.match(normalize_tax_code(code)) is not None


def parse_tax_code(code: str) -> ParsedTaxCode:
    """Decode a tax code.

    Raises:
        InvalidTaxCodeError: If the code is not a string or does not match.
    """
    if not isinstance(code, str):
        raise InvalidTaxCodeError(code)

    normalized = normalize_tax_code(code)
    match = TAX_CODE_PATTERN.match(normalized)
    if match is None:
        raise InvalidTaxCodeError(code)

    regime = REGIME_PREFIXES[match.group("regime")]
    cumulative = match.group("noncum") is None
    fixed = match.group("fixed")

    if fixed == "NT":
        return ParsedTaxCode(
            raw_code=normalized,
            regime=regime,
            fixed_code=fixed,
            cumulative=cumulative,
            no_tax=True,
        )

    if fixed == "0T":
        return ParsedTaxCode(
            raw_code=normalized,
            regime=regime,
            allowance_pence=0,
            fixed_code=fixed,
            cumulative=cumulative,
        )

    if fixed is not None:
        # BR/D0/D1 ignore year-to-date figures whatever the suffix
        return ParsedTaxCode(
            raw_code=normalized,
            regime=regime,
            fixed_code=fixed,
            cumulative=False,
        )

    if match.group("k") is not None:
        return ParsedTaxCode(
            raw_code=normalized,
            regime=regime,
            allowance_pence=-int(match.group("k")) * ALLOWANCE_UNIT_PENCE,
            is_negative_allowance=True,
            cumulative=cumulative,
        )

    return ParsedTaxCode(
        raw_code=normalized,
        regime=regime,
        allowance_pence=int(match.group("num")) * ALLOWANCE_UNIT_PENCE,
        suffix=match.group("suffix"),
        cumulative=cumulative,
    )
