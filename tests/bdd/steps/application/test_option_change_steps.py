"""BDD scenarios for option change"""
from pytest_bdd import scenarios

scenarios("../../features/application/option_change.feature")
