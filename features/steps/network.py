import typing

from behave import given, then, use_step_matcher, when

from soroban_cli.exceptions import SorobanCliError
from soroban_cli.locator import InMemoryLocator
from soroban_cli.network import Network, NetworkArgs, is_no_network, resolve

# Use regular expressions
use_step_matcher("re")


@given(
    r"a saved network (?P<name>\S+) with rpc url (?P<rpc_url>\S+) and passphrase (?P<passphrase>\S+)"
)
def given_saved_network(context: typing.Any, name: str, rpc_url: str, passphrase: str):
    context.locator = InMemoryLocator()
    context.locator.write_network(name, Network(rpc_url, passphrase))


@given(r"network arguments (?P<fields>.+)")
def given_network_args(context: typing.Any, fields: str):
    context.args = parse_network_args(fields)


@when(r"I resolve the network")
def when_resolve(context: typing.Any):
    context.network = None
    context.error = None
    try:
        context.network = resolve(context.args, context.locator)
    except SorobanCliError as e:
        context.error = e


@then(r"the network should be (?P<rpc_url>\S+) with passphrase (?P<passphrase>\S+)")
def then_network(context: typing.Any, rpc_url: str, passphrase: str):
    expected = Network(rpc_url, passphrase)
    assert context.network == expected, (
        "Expected " + str(expected) + " but got " + str(context.network)
    )


@then(r"resolution should fail with (?P<error>[a-zA-Z]+)")
def then_resolution_error(context: typing.Any, error: str):
    assert type(context.error).__name__ == error, (
        "Expected " + error + " but got " + repr(context.error)
    )


@then(r"the arguments should request no network")
def then_no_network(context: typing.Any):
    assert is_no_network(context.args)


def parse_network_args(fields: str) -> NetworkArgs:
    if fields == "none":
        return NetworkArgs()
    values: typing.Dict[str, str] = {}
    for field in fields.split():
        key, value = field.split("=", 1)
        values[key] = value
    return NetworkArgs(
        rpc_url=values.get("rpc_url"),
        network_passphrase=values.get("passphrase"),
        network=values.get("name"),
    )
