#!/usr/bin/env python3
"""
optionkit CLI

Offline protocol math from the command line. Prices, sizes and premiums are
entered and printed as decimals (``0.25``), not raw 18-decimal integers.

Usage:
    optionkit snap <lower> <upper> [--order-type TYPE]
    optionkit token-id encode <operator> <lower> <upper> [--order-type TYPE] [--version N]
    optionkit token-id decode <token_id>
    optionkit option-token-id encode <maturity> <strike> [--token-type TYPE]
    optionkit option-token-id decode <token_id>
    optionkit fee <size> <premium> [--orderbook]
    optionkit breakeven <strike> <price> <spot> [--call/--put] [--full-price]
    optionkit exercise-value <strike> <settlement> [--call/--put]
"""

from typing import Optional

import click

from optionkit import __version__
from optionkit.exceptions import OptionKitException
from optionkit.fixed import format_wad, parse_wad
from optionkit.logger import LogManager, get_logger
from optionkit.pricing import (
    OrderType,
    TokenType,
    breakeven_price,
    compute_taker_fee,
    decode_option_token_id,
    decode_position_token_id,
    encode_option_token_id,
    encode_position_token_id,
    exercise_value,
    snap_to_valid_range,
)

ORDER_TYPES = {
    "collateral-short-use-premiums": OrderType.COLLATERAL_SHORT_USE_PREMIUMS,
    "collateral-short": OrderType.COLLATERAL_SHORT,
    "long-collateral": OrderType.LONG_COLLATERAL,
}

TOKEN_TYPES = {
    "short": TokenType.SHORT,
    "long": TokenType.LONG,
}

order_type_option = click.option(
    "--order-type", "-t",
    type=click.Choice(list(ORDER_TYPES)),
    default="collateral-short",
    show_default=True,
    help="Range order type; long-collateral moves the lower bound",
)


class Decimal18(click.ParamType):
    """Decimal argument converted to an 18-decimal fixed-point integer."""

    name = "decimal"

    def convert(self, value, param, ctx):
        if isinstance(value, int):
            return value
        try:
            return parse_wad(value)
        except OptionKitException as e:
            self.fail(str(e), param, ctx)


class TokenIdParam(click.ParamType):
    """Integer token id, decimal or 0x-prefixed hex."""

    name = "token_id"

    def convert(self, value, param, ctx):
        if isinstance(value, int):
            return value
        try:
            return int(value, 0)
        except ValueError:
            self.fail(f"{value!r} is not a decimal or hex integer", param, ctx)


DECIMAL = Decimal18()
TOKEN_ID = TokenIdParam()


def _run(fn, *args, **kwargs):
    """Call *fn*, reporting protocol errors as CLI errors."""
    try:
        return fn(*args, **kwargs)
    except OptionKitException as e:
        get_logger(__name__).debug("Command failed: %s", e)
        raise click.ClickException(str(e))


@click.group()
@click.version_option(version=__version__, prog_name="optionkit")
@click.option("--log-level", default=None, help="Logging level (default from LOG_LEVEL)")
def cli(log_level: Optional[str]):
    """optionkit: option protocol math and identifiers."""
    LogManager().configure(log_level=log_level)


@cli.command("snap")
@click.argument("lower", type=DECIMAL)
@click.argument("upper", type=DECIMAL)
@order_type_option
def snap_cmd(lower: int, upper: int, order_type: str):
    """Snap a price range to the closest valid range.

    Examples:

        optionkit snap 0.001 0.007

        optionkit snap 0.001 0.8 --order-type long-collateral
    """
    snapped = _run(snap_to_valid_range, lower, upper, ORDER_TYPES[order_type])
    click.echo(f"lower: {format_wad(snapped.lower)}")
    click.echo(f"upper: {format_wad(snapped.upper)}")


@cli.group("token-id")
def token_id_group():
    """Range-order position token ids."""
    pass


@token_id_group.command("encode")
@click.argument("operator")
@click.argument("lower", type=DECIMAL)
@click.argument("upper", type=DECIMAL)
@order_type_option
@click.option("--version", "version", type=int, default=1, show_default=True, help="Token id format version")
def token_id_encode_cmd(operator: str, lower: int, upper: int, order_type: str, version: int):
    """Encode a range-order token id."""
    token_id = _run(encode_position_token_id, operator, lower, upper, ORDER_TYPES[order_type], version)
    click.echo(str(token_id))
    click.echo(hex(token_id))


@token_id_group.command("decode")
@click.argument("token_id", type=TOKEN_ID)
def token_id_decode_cmd(token_id: int):
    """Decode a range-order token id."""
    decoded = _run(decode_position_token_id, token_id)
    click.echo(f"version:    {decoded.version}")
    click.echo(f"order type: {decoded.order_type.name}")
    click.echo(f"operator:   {decoded.operator}")
    click.echo(f"lower:      {format_wad(decoded.lower)}")
    click.echo(f"upper:      {format_wad(decoded.upper)}")


@cli.group("option-token-id")
def option_token_id_group():
    """Option position token ids."""
    pass


@option_token_id_group.command("encode")
@click.argument("maturity", type=int)
@click.argument("strike", type=DECIMAL)
@click.option("--token-type", type=click.Choice(list(TOKEN_TYPES)), default="long", show_default=True)
def option_token_id_encode_cmd(maturity: int, strike: int, token_type: str):
    """Encode an option position token id (MATURITY in unix seconds)."""
    token_id = _run(encode_option_token_id, TOKEN_TYPES[token_type], maturity, strike)
    click.echo(str(token_id))
    click.echo(hex(token_id))


@option_token_id_group.command("decode")
@click.argument("token_id", type=TOKEN_ID)
def option_token_id_decode_cmd(token_id: int):
    """Decode an option position token id."""
    decoded = _run(decode_option_token_id, token_id)
    click.echo(f"token type: {decoded.token_type.name}")
    click.echo(f"maturity:   {decoded.maturity}")
    click.echo(f"strike:     {format_wad(decoded.strike)}")


@cli.command("fee")
@click.argument("size", type=DECIMAL)
@click.argument("premium", type=DECIMAL)
@click.option("--orderbook", is_flag=True, help="Use the orderbook fee schedule")
def fee_cmd(size: int, premium: int, orderbook: bool):
    """Estimate the taker fee for a trade.

    Examples:

        optionkit fee 1000 10
    """
    fee = _run(compute_taker_fee, size, premium, orderbook)
    click.echo(format_wad(fee))


@cli.command("breakeven")
@click.argument("strike", type=DECIMAL)
@click.argument("price", type=DECIMAL)
@click.argument("spot", type=DECIMAL)
@click.option("--call/--put", "is_call", default=True, help="Option type")
@click.option("--full-price", is_flag=True, help="PRICE is already in quote-token terms")
def breakeven_cmd(strike: int, price: int, spot: int, is_call: bool, full_price: bool):
    """Breakeven spot price of an option bought at PRICE."""
    result = _run(breakeven_price, strike, is_call, price, spot, full_price)
    click.echo(format_wad(result))


@cli.command("exercise-value")
@click.argument("strike", type=DECIMAL)
@click.argument("settlement", type=DECIMAL)
@click.option("--call/--put", "is_call", default=True, help="Option type")
def exercise_value_cmd(strike: int, settlement: int, is_call: bool):
    """Payout per contract at SETTLEMENT price."""
    click.echo(format_wad(_run(exercise_value, strike, is_call, settlement)))


if __name__ == "__main__":
    cli()
