"""
Tests for providers/ - provider interface and config-driven loading.
"""

import unittest

from shellsuggest.daemon.protocol import Suggestion
from shellsuggest.errors import ProviderLoadError
from shellsuggest.providers import (
    EmptyProvider,
    StaticProvider,
    SuggestionProvider,
    load_provider,
)


class PrefixProvider(SuggestionProvider):
    """Suggests the word before the cursor, twice."""

    def provide(self, buffer, cursor):
        word = buffer[:cursor].split(" ")[-1]
        return [Suggestion(word + "1"), Suggestion(word + "2")]


def make_provider():
    return StaticProvider([Suggestion("from-factory")])


def broken_factory():
    raise RuntimeError("no engine")


def not_a_provider():
    return object()


PREBUILT = StaticProvider([Suggestion("prebuilt")])


class TestBuiltinProviders(unittest.TestCase):

    def test_empty_provider_returns_nothing(self):
        self.assertEqual(list(EmptyProvider().provide("git comm", 8)), [])

    def test_static_provider_ignores_input(self):
        provider = StaticProvider([Suggestion("commit"), Suggestion("common")])
        self.assertEqual(provider.provide("", 0), provider.provide("git comm", 8))
        self.assertEqual(
            [s.text for s in provider.provide("git comm", 8)], ["commit", "common"]
        )

    def test_interface_is_abstract(self):
        with self.assertRaises(TypeError):
            SuggestionProvider()


class TestLoadProvider(unittest.TestCase):
    """load_provider resolves instances, classes and factories."""

    def test_empty_spec_gives_empty_provider(self):
        self.assertIsInstance(load_provider(""), EmptyProvider)
        self.assertIsInstance(load_provider("   "), EmptyProvider)

    def test_class_is_instantiated(self):
        provider = load_provider(f"{__name__}:PrefixProvider")
        self.assertIsInstance(provider, PrefixProvider)
        self.assertEqual(provider.provide("git co", 6)[0].text, "co1")

    def test_builtin_class_by_path(self):
        provider = load_provider("shellsuggest.providers.base:EmptyProvider")
        self.assertIsInstance(provider, EmptyProvider)

    def test_instance_is_used_as_is(self):
        self.assertIs(load_provider(f"{__name__}:PREBUILT"), PREBUILT)

    def test_factory_is_called(self):
        provider = load_provider(f"{__name__}:make_provider")
        self.assertEqual(provider.provide("x", 1)[0].text, "from-factory")

    def test_malformed_specs(self):
        for spec in ["no_colon", ":attr", "module:"]:
            with self.subTest(spec=spec):
                with self.assertRaises(ProviderLoadError) as context:
                    load_provider(spec)
                self.assertIn("Invalid provider", str(context.exception))

    def test_missing_module(self):
        with self.assertRaises(ProviderLoadError) as context:
            load_provider("shellsuggest_no_such_module:Provider")
        self.assertIn("Cannot import", str(context.exception))

    def test_missing_attribute(self):
        with self.assertRaises(ProviderLoadError):
            load_provider(f"{__name__}:DoesNotExist")

    def test_non_callable_target(self):
        with self.assertRaises(ProviderLoadError):
            load_provider("os:sep")

    def test_factory_failure_is_wrapped(self):
        with self.assertRaises(ProviderLoadError) as context:
            load_provider(f"{__name__}:broken_factory")
        self.assertIn("no engine", str(context.exception))

    def test_class_needing_arguments_fails(self):
        with self.assertRaises(ProviderLoadError):
            load_provider("shellsuggest.providers.base:StaticProvider")

    def test_factory_result_without_provide(self):
        with self.assertRaises(ProviderLoadError) as context:
            load_provider(f"{__name__}:not_a_provider")
        self.assertIn("provide", str(context.exception))

    def test_load_error_is_shellsuggest_error(self):
        from shellsuggest.errors import ShellSuggestError

        self.assertTrue(issubclass(ProviderLoadError, ShellSuggestError))


if __name__ == "__main__":
    unittest.main()
