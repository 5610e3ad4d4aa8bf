import typing

from behave import given, then, use_step_matcher, when

from soroban_cli import secret
from soroban_cli.exceptions import SorobanCliError

# Use regular expressions
use_step_matcher("re")


@given(r"the test seed phrase")
def given_test_seed_phrase(context: typing.Any):
    context.secret = secret.test_seed_phrase()


@given(r'the seed phrase "(?P<words>[a-z ]+)"')
def given_seed_phrase(context: typing.Any, words: str):
    context.secret = secret.SeedPhrase(words)


@given(r'a seed phrase from seed "(?P<seed>[^"]*)"')
def given_seed(context: typing.Any, seed: str):
    context.secret = secret.from_seed(seed)


@given(r"a secret key derived from the test seed phrase")
def given_secret_key(context: typing.Any):
    private_key = secret.private_key(secret.test_seed_phrase())
    context.secret = secret.SecretKey(str(private_key))


@when(r"I derive the public key at hd path (?P<hd_path>\d+)")
def when_derive(context: typing.Any, hd_path: str):
    context.public_key = None
    context.error = None
    try:
        context.public_key = secret.public_key(context.secret, int(hd_path))
    except SorobanCliError as e:
        context.error = e


@then(r'the seed phrase should be "(?P<words>[a-z ]+)"')
def then_seed_phrase(context: typing.Any, words: str):
    assert context.secret.seed_phrase == words, (
        "Expected " + words + " but got " + context.secret.seed_phrase
    )


@then(r"the public key should be (?P<address>G[A-Z2-7]{55})")
def then_public_key(context: typing.Any, address: str):
    assert str(context.public_key) == address, (
        "Expected " + address + " but got " + str(context.public_key)
    )


@then(r"it should equal the public key without an hd path")
def then_default_hd_path(context: typing.Any):
    assert context.public_key == secret.public_key(context.secret)


@then(r'generating from seed "(?P<seed>[^"]*)" again should give the same phrase')
def then_same_phrase(context: typing.Any, seed: str):
    assert secret.from_seed(seed) == context.secret


@then(r"derivation should fail with (?P<error>[a-zA-Z]+)")
def then_derivation_error(context: typing.Any, error: str):
    assert type(context.error).__name__ == error, (
        "Expected " + error + " but got " + repr(context.error)
    )


@then(r"it should equal the test seed phrase")
def then_test_seed_phrase(context: typing.Any):
    assert context.secret == secret.test_seed_phrase(), (
        "Expected the test seed phrase but got a different phrase"
    )
