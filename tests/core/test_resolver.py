from rate_governor.core.resolver import ComputedCase, ComputedValue, ParameterResolver
from rate_governor.core.rule_matcher import Trigger


def test_fixed_value_resolves_to_itself() -> None:
    assert ParameterResolver().resolve(ComputedValue.fixed(5), Trigger(user_id="1")) == 5


def test_first_matching_case_wins() -> None:
    spec = ComputedValue(
        default=10,
        cases=(
            ComputedCase(value=0, users=frozenset({"admin"})),
            ComputedCase(value=2, channels=frozenset({"vip"})),
            ComputedCase(value=7, users=frozenset({"admin"})),
        ),
    )
    resolver = ParameterResolver()
    assert resolver.resolve(spec, Trigger(user_id="admin", channel_id="vip")) == 0
    assert resolver.resolve(spec, Trigger(user_id="bob", channel_id="vip")) == 2
    assert resolver.resolve(spec, Trigger(user_id="bob", channel_id=None)) == 10
