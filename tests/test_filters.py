"""Tests for the region allow-list and group tag filters."""

import pytest

from autospot.core.config import Config
from autospot.core.exceptions import ConfigurationError
from autospot.services.filters import TagFilter, parse_tag_expression, region_enabled


class TestRegionEnabled:

    def test_empty_allow_list_enables_everything(self):
        assert region_enabled("ap-southeast-3", [])

    def test_exact_and_glob_entries(self):
        allowed = ["us-east-1", "eu-*"]

        assert region_enabled("us-east-1", allowed)
        assert region_enabled("eu-central-2", allowed)
        assert not region_enabled("us-east-2", allowed)
        assert not region_enabled("ap-south-1", allowed)


class TestTagFilter:

    def test_opt_in_default(self):
        tag_filter = TagFilter.from_config(Config())

        assert tag_filter.mode == "opt-in"
        assert tag_filter.expression == "spot-enabled=true"
        assert tag_filter.enables({"spot-enabled": "true", "team": "web"})
        assert not tag_filter.enables({"spot-enabled": "false"})
        assert not tag_filter.enables({})

    def test_opt_out_default(self):
        tag_filter = TagFilter.from_config(Config(tag_filtering_mode="opt-out"))

        assert tag_filter.expression == "spot-enabled=false"
        assert tag_filter.enables({})
        assert tag_filter.enables({"spot-enabled": "true"})
        assert not tag_filter.enables({"spot-enabled": "false"})

    def test_unknown_mode_is_opt_in(self):
        tag_filter = TagFilter.from_config(Config(tag_filtering_mode="sometimes"))
        assert tag_filter.mode == "opt-in"

    def test_all_pairs_must_match(self):
        tag_filter = TagFilter.from_config(Config(filter_by_tags="spot-enabled=true, env=dev"))

        assert tag_filter.enables({"spot-enabled": "true", "env": "dev"})
        assert not tag_filter.enables({"spot-enabled": "true", "env": "prod"})

    def test_parse_expression(self):
        assert parse_tag_expression("a=1,b=,c = 3") == (("a", "1"), ("b", ""), ("c", "3"))

    def test_invalid_expression(self):
        with pytest.raises(ConfigurationError):
            parse_tag_expression("spot-enabled")
