# szamlazzhu/tests/test_conf.py
# -*- coding: utf-8 -*-
from __future__ import annotations

from django.apps import apps
from django.core.exceptions import ImproperlyConfigured
from django.test import SimpleTestCase, override_settings

from szamlazzhu.conf import DEFAULTS, ClientConfig, build_config, load_config, merge_config, validate_timeout
from szamlazzhu.errors import InvalidClientConfigurationError


class MergeConfigTests(SimpleTestCase):
    def test_deep_merge_does_not_mutate_inputs(self):
        overrides = {"storage": {"auto_save": True}}

        merged = merge_config(DEFAULTS, overrides)

        self.assertTrue(merged["storage"]["auto_save"])
        self.assertEqual(merged["storage"]["disk"], "default")
        self.assertFalse(DEFAULTS["storage"]["auto_save"])
        self.assertEqual(overrides, {"storage": {"auto_save": True}})


class BuildConfigTests(SimpleTestCase):
    def test_defaults_applied(self):
        config = build_config({"credentials": {"api_key": "k"}})

        self.assertIsInstance(config, ClientConfig)
        self.assertEqual(config.timeout, 30)
        self.assertEqual(config.base_uri, "https://www.szamlazz.hu/")
        self.assertEqual(config.credentials.api_key, "k")
        self.assertFalse(config.should_save_pdf)

    def test_username_and_password_are_enough(self):
        config = build_config({"credentials": {"username": "u", "password": "p"}})
        self.assertIsNone(config.credentials.api_key)

    def test_incomplete_credentials(self):
        for credentials in ({}, {"username": "u"}, {"password": "p"}):
            with self.subTest(credentials=credentials):
                with self.assertRaises(InvalidClientConfigurationError) as ctx:
                    build_config({"credentials": credentials})
                self.assertIn("credentials", ctx.exception.errors)

    def test_timeout_bounds(self):
        for timeout in (9, 301):
            with self.subTest(timeout=timeout):
                with self.assertRaises(InvalidClientConfigurationError) as ctx:
                    build_config({"credentials": {"api_key": "k"}, "timeout": timeout})
                self.assertIn("timeout", ctx.exception.errors)

        self.assertEqual(build_config({"credentials": {"api_key": "k"}, "timeout": 10}).timeout, 10)
        self.assertEqual(build_config({"credentials": {"api_key": "k"}, "timeout": 300}).timeout, 300)

    def test_invalid_base_uri(self):
        with self.assertRaises(InvalidClientConfigurationError) as ctx:
            build_config({"credentials": {"api_key": "k"}, "base_uri": "not a url"})
        self.assertIn("base_uri", ctx.exception.errors)

    def test_config_is_frozen(self):
        config = build_config({"credentials": {"api_key": "k"}})
        with self.assertRaises(AttributeError):
            config.timeout = 60

    def test_validate_timeout_uses_the_same_range(self):
        self.assertEqual(validate_timeout(10), 10)
        self.assertEqual(validate_timeout("300"), 300)
        for value in (9, 301, "abc"):
            with self.subTest(value=value):
                with self.assertRaises(InvalidClientConfigurationError) as ctx:
                    validate_timeout(value)
                self.assertIn("timeout", ctx.exception.errors)


class LoadConfigTests(SimpleTestCase):
    def test_reads_project_settings(self):
        config = load_config()

        self.assertEqual(config.credentials.api_key, "test-agent-key")
        self.assertEqual(config.merchant["name"], "Teszt Kft.")

    def test_overrides_on_top_of_settings(self):
        config = load_config({"storage": {"auto_save": True}, "timeout": 60})

        self.assertTrue(config.should_save_pdf)
        self.assertEqual(config.timeout, 60)
        self.assertEqual(config.credentials.api_key, "test-agent-key")


class AppConfigTests(SimpleTestCase):
    @override_settings(SZAMLAZZHU={"credentials": {}})
    def test_ready_rejects_invalid_settings(self):
        with self.assertRaises(ImproperlyConfigured):
            apps.get_app_config("szamlazzhu").ready()

    @override_settings(SZAMLAZZHU=None)
    def test_ready_skips_when_not_configured(self):
        apps.get_app_config("szamlazzhu").ready()
