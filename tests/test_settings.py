"""Tests for configuration loading and the build context."""

import os
import sys
import json
from pathlib import Path

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from pagesmith_pkg.context import BuildContext
from pagesmith_pkg.errors import ConfigurationError
from pagesmith_pkg.settings import PageSmithSettings


class TestPageSmithSettings:
    """Test cases for PageSmithSettings."""

    def test_defaults_without_config_file(self, temp_dir):
        settings = PageSmithSettings(temp_dir).load_settings()
        assert settings == PageSmithSettings.DEFAULT_SETTINGS

    def test_load_yaml(self, temp_dir):
        Path(temp_dir, 'pagesmith.yml').write_text(
            "base_url: https://example.com\nfeed_title: My Site\narchive: true\nnews: home\n"
        )
        loader = PageSmithSettings(temp_dir)
        settings = loader.load_settings()

        assert settings['base_url'] == 'https://example.com'
        assert settings['feed_title'] == 'My Site'
        assert settings['archive'] is True
        assert settings['news'] == 'home'
        assert settings['parser'] == 'cat'
        assert loader.config_file_path.endswith('pagesmith.yml')

    def test_load_json(self, temp_dir):
        Path(temp_dir, 'pagesmith.json').write_text(json.dumps({'parser': 'markdown', 'hide_user': True}))
        settings = PageSmithSettings(temp_dir).load_settings()
        assert settings['parser'] == 'markdown'
        assert settings['hide_user'] is True

    def test_yml_preferred_over_json(self, temp_dir):
        Path(temp_dir, 'pagesmith.yml').write_text("output: from-yaml\n")
        Path(temp_dir, 'pagesmith.json').write_text(json.dumps({'output': 'from-json'}))
        assert PageSmithSettings(temp_dir).load_settings()['output'] == 'from-yaml'

    def test_invalid_yaml_falls_back_to_defaults(self, temp_dir, capsys):
        Path(temp_dir, 'pagesmith.yml').write_text("base_url: [unclosed\n")
        settings = PageSmithSettings(temp_dir).load_settings()

        assert settings['base_url'] == ''
        assert 'Warning: Failed to load config file' in capsys.readouterr().out

    def test_non_mapping_config_is_rejected(self, temp_dir, capsys):
        Path(temp_dir, 'pagesmith.yml').write_text("- just\n- a list\n")
        settings = PageSmithSettings(temp_dir).load_settings()

        assert settings == PageSmithSettings.DEFAULT_SETTINGS
        assert 'must be a mapping' in capsys.readouterr().out

    def test_merge_with_args(self, temp_dir):
        Path(temp_dir, 'pagesmith.yml').write_text("base_url: https://file.example\narchive: true\n")
        loader = PageSmithSettings(temp_dir)
        loader.load_settings()

        merged = loader.merge_with_args({'base_url': 'https://cli.example', 'feed_title': None})
        assert merged['base_url'] == 'https://cli.example'
        assert merged['archive'] is True
        assert merged['feed_title'] is None

    def test_unknown_keys_are_ignored(self, temp_dir, capsys):
        Path(temp_dir, 'pagesmith.yml').write_text("output: public\nthemes: dark\n")
        settings = PageSmithSettings(temp_dir).load_settings()

        assert settings['output'] == 'public'
        assert 'themes' not in settings
        assert 'Ignoring unknown settings' in capsys.readouterr().out

    def test_empty_config_keeps_defaults(self, temp_dir):
        Path(temp_dir, 'pagesmith.yaml').write_text("")
        loader = PageSmithSettings(temp_dir)
        assert loader.load_settings() == PageSmithSettings.DEFAULT_SETTINGS
        assert loader.config_file_path.endswith('pagesmith.yaml')

    def test_merge_ignores_options_without_setting(self, temp_dir):
        merged = PageSmithSettings(temp_dir).merge_with_args({'verbose': True, 'output': 'www'})
        assert merged['output'] == 'www'
        assert 'verbose' not in merged

    @pytest.mark.parametrize('file_format', ['yml', 'yaml', 'json'])
    def test_sample_config_round_trip(self, temp_dir, file_format):
        loader = PageSmithSettings(temp_dir)
        path = loader.create_sample_config(file_format)

        assert os.path.basename(path) == f'pagesmith.{file_format}'
        settings = PageSmithSettings(temp_dir).load_settings()
        assert settings['base_url'] == 'https://example.com'
        assert settings['parser'] == 'pagesmith-markdown'
        assert settings['news'] == 'home'
        BuildContext.from_settings(settings)


class TestBuildContext:
    """Test cases for BuildContext."""

    def test_defaults(self):
        context = BuildContext()
        assert context.source_dir == 'src'
        assert context.output_dir == 'build'
        assert context.base_url == ''
        assert context.parser_args == ['cat']
        assert context.news is None
        assert context.owner

    def test_parser_args_are_split(self):
        context = BuildContext(parser='pandoc -f markdown --title "My Site"')
        assert context.parser_args == ['pandoc', '-f', 'markdown', '--title', 'My Site']

    def test_invalid_news_mode(self):
        with pytest.raises(ConfigurationError, match='news mode'):
            BuildContext(news='sidebar')

    def test_empty_parser(self):
        with pytest.raises(ConfigurationError):
            BuildContext(parser='  ')

    def test_is_immutable(self):
        context = BuildContext()
        with pytest.raises(AttributeError):
            context.base_url = 'https://example.com'

    def test_from_settings(self):
        settings = dict(PageSmithSettings.DEFAULT_SETTINGS)
        settings.update({'source': 'content', 'header': 'h.html', 'owner': 'scarlett', 'news': 'page', 'feed': True})
        context = BuildContext.from_settings(settings)

        assert context.source_dir == 'content'
        assert context.header_template == 'h.html'
        assert context.footer_template == 'footer.html'
        assert context.owner == 'scarlett'
        assert context.news == 'page'
        assert context.feed is True

    def test_from_settings_defaults_owner(self):
        context = BuildContext.from_settings(dict(PageSmithSettings.DEFAULT_SETTINGS))
        assert context.owner

    def test_unbalanced_parser_quotes(self):
        with pytest.raises(ConfigurationError, match='markup filter command'):
            BuildContext(parser="cat 'x")

    @pytest.mark.parametrize('key', ['archive', 'feed', 'hide_user'])
    def test_from_settings_rejects_non_boolean_switches(self, key):
        settings = dict(PageSmithSettings.DEFAULT_SETTINGS)
        settings[key] = 'false'
        with pytest.raises(ConfigurationError, match=key):
            BuildContext.from_settings(settings)

    def test_from_settings_accepts_missing_switches(self):
        context = BuildContext.from_settings({'archive': None, 'owner': 'scarlett'})
        assert context.archive is False
        assert context.hide_user is False
