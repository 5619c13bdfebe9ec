"""
Layer rules.

Permanent tests enforcing dependency direction between layers:
- Domain must not access Guards, Application or Infrastructure
- Guards and Application must not access Infrastructure
"""

import pytest
from pytestarch import LayerRule


class TestLayerRules:
    """Dependency direction between the layers."""

    @pytest.mark.parametrize("other", ["guards", "application", "infrastructure"])
    def test_domain_is_independent(self, evaluable, layers, other: str) -> None:
        """Domain must not know about policies or adapters."""
        rule = (
            LayerRule()
            .based_on(layers)
            .layers_that()
            .are_named("domain")
            .should_not()
            .access_layers_that()
            .are_named(other)
        )
        rule.assert_applies(evaluable)

    def test_application_does_not_access_infrastructure(self, evaluable, layers) -> None:
        """The loop depends on domain ports, not concrete adapters."""
        rule = (
            LayerRule()
            .based_on(layers)
            .layers_that()
            .are_named("application")
            .should_not()
            .access_layers_that()
            .are_named("infrastructure")
        )
        rule.assert_applies(evaluable)

    def test_guards_do_not_access_infrastructure(self, evaluable, layers) -> None:
        """Guardrails read usage through the token tracker port."""
        rule = (
            LayerRule()
            .based_on(layers)
            .layers_that()
            .are_named("guards")
            .should_not()
            .access_layers_that()
            .are_named("infrastructure")
        )
        rule.assert_applies(evaluable)

    def test_guards_do_not_access_application(self, evaluable, layers) -> None:
        rule = (
            LayerRule()
            .based_on(layers)
            .layers_that()
            .are_named("guards")
            .should_not()
            .access_layers_that()
            .are_named("application")
        )
        rule.assert_applies(evaluable)
