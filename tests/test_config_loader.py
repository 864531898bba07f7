"""
Unit tests for the analysis settings loader.
"""

import os
import shutil
import tempfile
import unittest

import sys
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from analyzers.config_loader import ConfigLoader, AnalysisSettings
from analyzers.exceptions import ConfigurationError
from analyzers.prompts import UserProfile
from config import ANALYSIS_CONFIG_FILE, PARSE_TELEMETRY_SAMPLE_RATE


class TestConfigLoader(unittest.TestCase):
    """Test cases for ConfigLoader."""

    def setUp(self):
        self.config_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.config_dir)

    def write_config(self, content: str):
        with open(os.path.join(self.config_dir, ANALYSIS_CONFIG_FILE), 'w', encoding='utf-8') as f:
            f.write(content)

    def load(self, environ=None) -> AnalysisSettings:
        return ConfigLoader(self.config_dir, environ=environ or {}).load()

    def test_missing_file_gives_defaults(self):
        settings = self.load()
        self.assertEqual(settings.telemetry_sample_rate, PARSE_TELEMETRY_SAMPLE_RATE)
        self.assertTrue(settings.repair_enabled)

    def test_empty_file_gives_defaults(self):
        self.write_config('')
        self.assertEqual(self.load(), AnalysisSettings())

    def test_yaml_values(self):
        self.write_config(
            "model:\n  provider: stub\n  max_tokens: 2048\n"
            "telemetry:\n  sample_rate: 0.5\n"
            "repair:\n  enabled: false\n"
            "user_profile:\n  companyName: Acme\n"
        )
        settings = self.load()
        self.assertEqual(settings.model_provider, 'stub')
        self.assertEqual(settings.max_tokens, 2048)
        self.assertEqual(settings.telemetry_sample_rate, 0.5)
        self.assertFalse(settings.repair_enabled)
        self.assertEqual(settings.user_profile, {'companyName': 'Acme'})

    def test_environment_overrides_file(self):
        self.write_config("model:\n  provider: backend\ntelemetry:\n  sample_rate: 0.5\n")
        settings = self.load({'MODEL_PROVIDER': 'openai', 'PARSE_TELEMETRY_SAMPLE_RATE': '0.25'})
        self.assertEqual(settings.model_provider, 'openai')
        self.assertEqual(settings.telemetry_sample_rate, 0.25)

    def test_settings_cached(self):
        loader = ConfigLoader(self.config_dir, environ={})
        self.assertIs(loader.load(), loader.load())

    def test_invalid_yaml(self):
        self.write_config("model: [unclosed\n")
        with self.assertRaises(ConfigurationError):
            self.load()

    def test_non_mapping_document(self):
        self.write_config("- just\n- a list\n")
        with self.assertRaises(ConfigurationError):
            self.load()

    def test_non_mapping_section(self):
        self.write_config("telemetry: 0.5\n")
        with self.assertRaises(ConfigurationError):
            self.load()

    def test_invalid_values(self):
        self.write_config("model:\n  max_tokens: lots\n")
        with self.assertRaises(ConfigurationError):
            self.load()

    def test_validation(self):
        with self.assertRaises(ConfigurationError):
            self.load({'PARSE_TELEMETRY_SAMPLE_RATE': '1.5'})
        with self.assertRaises(ConfigurationError):
            self.load({'MODEL_MAX_TOKENS': '0'})
        with self.assertRaises(ConfigurationError):
            self.load({'MODEL_PROVIDER': 'gemini-direct'})
        with self.assertRaises(ConfigurationError):
            self.load({'MODEL_MAX_TOKENS': 'many'})

    def test_shipped_config_is_valid(self):
        settings = ConfigLoader(environ={}).load()
        self.assertEqual(settings.model_provider, 'backend')
        self.assertEqual(settings.telemetry_sample_rate, 0.12)
        self.assertTrue(UserProfile.from_dict(settings.user_profile).is_empty())


if __name__ == '__main__':
    unittest.main()
