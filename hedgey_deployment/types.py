from typing import Union

import click
from eth_utils import is_hex_address, to_checksum_address

SignerSelector = Union[int, str]


def parse_signer_selector(value: SignerSelector) -> SignerSelector:
    """
    Normalizes a signer selector: an index into the available signers,
    a checksum address, or an ape account alias.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid signer selector '{value}'")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"Signer index must not be negative, got {value}")
        return value

    value = str(value).strip()
    if not value:
        raise ValueError("Empty signer selector")
    if value.isdigit():
        return int(value)
    if is_hex_address(value):
        return to_checksum_address(value)
    return value


class MinInt(click.ParamType):
    name = "minint"

    def __init__(self, min_value):
        self.min_value = min_value

    def convert(self, value, param, ctx):
        try:
            ivalue = int(value)
        except ValueError:
            self.fail(f"{value} is not a valid integer", param, ctx)
        if ivalue < self.min_value:
            self.fail(
                f"{value} is less than the minimum allowed value of {self.min_value}", param, ctx
            )
        return ivalue


class Signer(click.ParamType):
    name = "signer"

    def convert(self, value, param, ctx):
        try:
            return parse_signer_selector(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)
