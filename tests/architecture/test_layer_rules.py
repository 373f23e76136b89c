"""
Dependency direction between cycleguard's layers.

- domain imports nothing from the other layers
- application reaches records, runners and the worker only through domain ports
- schemas are a leaf, read by infrastructure validators and config
- cli wires concrete adapters and nothing imports it back
"""

import pytest
from pytestarch import LayerRule


def _rule(layers, source: str):  # noqa: ANN001, ANN202
    return LayerRule().based_on(layers).layers_that().are_named(source)


class TestDomainIsInnermost:
    @pytest.mark.parametrize(
        "outer", ["application", "infrastructure", "schemas", "cli"]
    )
    def test_domain_does_not_access(self, evaluable, layers, outer):
        """Domain models and ports must not know who uses or stores them."""
        _rule(layers, "domain").should_not().access_layers_that().are_named(
            outer
        ).assert_applies(evaluable)


class TestApplicationUsesPorts:
    @pytest.mark.parametrize("outer", ["infrastructure", "schemas", "cli"])
    def test_application_does_not_access(self, evaluable, layers, outer):
        """The controller sees AgentRecords and ports, never files or JSON Schemas."""
        _rule(layers, "application").should_not().access_layers_that().are_named(
            outer
        ).assert_applies(evaluable)


class TestSchemasAreALeaf:
    @pytest.mark.parametrize(
        "layer", ["domain", "application", "infrastructure", "cli"]
    )
    def test_schemas_do_not_access(self, evaluable, layers, layer):
        _rule(layers, "schemas").should_not().access_layers_that().are_named(
            layer
        ).assert_applies(evaluable)

    def test_infrastructure_validates_with_schemas(self, evaluable, layers):
        """Status records and dependency patterns are checked against bundled schemas."""
        _rule(layers, "infrastructure").should().access_layers_that().are_named(
            "schemas"
        ).assert_applies(evaluable)


class TestCliIsCompositionRoot:
    def test_cli_wires_infrastructure(self, evaluable, layers):
        """Only the command line picks concrete stores and runners."""
        _rule(layers, "cli").should().access_layers_that().are_named(
            "infrastructure"
        ).assert_applies(evaluable)

    @pytest.mark.parametrize("layer", ["infrastructure", "schemas"])
    def test_nothing_inner_accesses_cli(self, evaluable, layers, layer):
        _rule(layers, layer).should_not().access_layers_that().are_named(
            "cli"
        ).assert_applies(evaluable)
