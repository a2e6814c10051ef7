"""Tests for the configuration model and content node models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from copy_maker.constants import NodeKind
from copy_maker.content.models import (
    ConfigurationModel,
    ContentNode,
    CopyMode,
    OutputSection,
    SeoItem,
    StyleDerivation,
    WordCountPreset,
    count_words,
    validate_configuration,
)
from copy_maker.content.tolerance import ToleranceMode, TolerancePolicy
from copy_maker.errors import ValidationError
from copy_maker.providers import config as config_module


class TestCountWords:
    """Tests for the word counter."""

    def test_counts_whitespace_separated_tokens(self):
        assert count_words("one two  three\nfour\tfive") == 5

    def test_empty_text(self):
        assert count_words("") == 0
        assert count_words("   \n ") == 0

    def test_punctuation_stays_attached(self):
        assert count_words("Hello, world - again!") == 4


class TestTargetWordCount:
    """Tests for resolving the effective target."""

    def test_no_length_requested(self):
        assert ConfigurationModel(business_description="x").target_word_count() is None

    @pytest.mark.parametrize(
        "preset,expected",
        [(WordCountPreset.SHORT, 75), (WordCountPreset.MEDIUM, 150), (WordCountPreset.LONG, 300)],
    )
    def test_presets(self, preset, expected):
        config = ConfigurationModel(business_description="x", word_count=preset)
        assert config.target_word_count() == expected

    def test_custom_value(self):
        config = ConfigurationModel(
            business_description="x",
            word_count=WordCountPreset.CUSTOM,
            custom_word_count=200,
        )
        assert config.target_word_count() == 200

    def test_custom_value_ignored_when_preset_chosen(self):
        config = ConfigurationModel(
            business_description="x",
            word_count=WordCountPreset.SHORT,
            custom_word_count=200,
        )
        assert config.target_word_count() == 75

    def test_section_total_wins_over_preset(self):
        config = ConfigurationModel(
            business_description="x",
            word_count=WordCountPreset.SHORT,
            output_structure=[
                OutputSection(name="headline", word_count=20),
                OutputSection(name="body", word_count=180),
            ],
        )
        assert config.target_word_count() == 200

    def test_larger_of_custom_and_sections(self):
        config = ConfigurationModel(
            business_description="x",
            custom_word_count=120,
            output_structure=[OutputSection(name="body", word_count=250)],
        )
        assert config.target_word_count() == 250


class TestDistributedSections:
    """Tests for spreading the target across unbudgeted sections."""

    def test_even_split(self):
        config = ConfigurationModel(
            business_description="x",
            word_count=WordCountPreset.LONG,
            output_structure=[OutputSection(name="a"), OutputSection(name="b"), OutputSection(name="c")],
        )
        prepared = config.with_distributed_sections()
        assert [s.word_count for s in prepared.output_structure] == [100, 100, 100]
        # Original is untouched
        assert all(s.word_count is None for s in config.output_structure)

    def test_existing_allocations_are_kept(self):
        config = ConfigurationModel(
            business_description="x",
            output_structure=[OutputSection(name="a", word_count=40), OutputSection(name="b")],
        )
        prepared = config.with_distributed_sections()
        assert [s.word_count for s in prepared.output_structure] == [40, None]


class TestValidateConfiguration:
    """Tests for configuration validation."""

    def test_valid_configuration(self, base_config):
        validate_configuration(base_config)

    def test_empty_business_description(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_configuration(ConfigurationModel(business_description="   "))
        assert exc_info.value.field == "business_description"

    def test_improve_mode_needs_original_copy(self):
        config = ConfigurationModel(mode=CopyMode.IMPROVE, business_description="Some business")
        with pytest.raises(ValidationError) as exc_info:
            validate_configuration(config)
        assert exc_info.value.field == "original_copy"

    def test_non_positive_custom_word_count(self):
        config = ConfigurationModel(business_description="x", custom_word_count=0)
        with pytest.raises(ValidationError):
            validate_configuration(config)

    def test_custom_preset_without_value(self):
        config = ConfigurationModel(business_description="x", word_count=WordCountPreset.CUSTOM)
        with pytest.raises(ValidationError):
            validate_configuration(config)

    def test_negative_section_allocation(self):
        config = ConfigurationModel(
            business_description="x",
            output_structure=[OutputSection(name="body", word_count=-5)],
        )
        with pytest.raises(ValidationError):
            validate_configuration(config)

    def test_zero_tolerance_rejected(self):
        config = ConfigurationModel(business_description="x", word_count_tolerance_percentage=0)
        with pytest.raises(ValidationError) as exc_info:
            validate_configuration(config)
        assert exc_info.value.field == "word_count_tolerance_percentage"

    def test_revision_attempts_bounded_by_model(self):
        with pytest.raises(PydanticValidationError):
            ConfigurationModel(business_description="x", max_revision_attempts=6)

    def test_tone_level_bounded_by_model(self):
        with pytest.raises(PydanticValidationError):
            ConfigurationModel(business_description="x", tone_level=101)



class TestEngineDefaults:
    """Tests for word-count defaults coming from COPY_MAKER_* settings."""

    @pytest.fixture
    def fresh_settings(self, monkeypatch):
        monkeypatch.setattr(config_module, "_engine_settings", None)

    def test_environment_changes_model_defaults(self, monkeypatch, fresh_settings):
        monkeypatch.setenv("COPY_MAKER_MAX_REVISION_ATTEMPTS", "5")
        monkeypatch.setenv("COPY_MAKER_SHORT_CONTENT_THRESHOLD", "50")

        config = ConfigurationModel(business_description="x")

        assert config.max_revision_attempts == 5
        assert config.short_content_threshold == 50
        assert TolerancePolicy.for_target(config, 80).mode == ToleranceMode.PERCENTAGE

    def test_explicit_values_win(self, monkeypatch, fresh_settings):
        monkeypatch.setenv("COPY_MAKER_MAX_REVISION_ATTEMPTS", "5")

        config = ConfigurationModel(business_description="x", max_revision_attempts=1)

        assert config.max_revision_attempts == 1

    def test_out_of_range_engine_value_rejected(self, base_config):
        config = base_config.model_copy(update={"max_revision_attempts": 9})
        with pytest.raises(ValidationError) as exc_info:
            validate_configuration(config)
        assert exc_info.value.field == "max_revision_attempts"

class TestConfigurationHelpers:
    """Tests for small derived values."""

    def test_keyword_list(self):
        config = ConfigurationModel(business_description="x", keywords=" seo, copy ,, growth ")
        assert config.keyword_list() == ["seo", "copy", "growth"]

    def test_primary_text_follows_mode(self):
        config = ConfigurationModel(
            mode=CopyMode.IMPROVE,
            business_description="business",
            original_copy="old copy",
        )
        assert config.primary_text == "old copy"

    def test_section_display_name(self):
        assert OutputSection(name="cta").display_name == "cta"
        assert OutputSection(name="cta", label="Call to action").display_name == "Call to action"


class TestContentNode:
    """Tests for node provenance rules."""

    def test_word_count_is_computed(self):
        node = ContentNode(id="n1", kind=NodeKind.BASE, text="three little words")
        assert node.word_count == 3

    def test_base_node_cannot_have_parent(self):
        with pytest.raises(PydanticValidationError):
            ContentNode(id="n2", kind=NodeKind.BASE, text="x", derived_from="n1")

    def test_derived_node_needs_parent(self):
        with pytest.raises(PydanticValidationError):
            ContentNode(
                id="n2",
                kind=NodeKind.STYLED,
                text="x",
                derivation_meta=StyleDerivation(style_name="steve-jobs", category="persona"),
            )

    def test_nodes_are_immutable(self):
        node = ContentNode(id="n1", kind=NodeKind.BASE, text="x")
        with pytest.raises(PydanticValidationError):
            node.text = "changed"

    def test_derivation_meta_round_trips_through_json(self):
        node = ContentNode(
            id="n2",
            kind=NodeKind.STYLED,
            text="x",
            derived_from="n1",
            derivation_meta=StyleDerivation(style_name="steve-jobs", category="persona"),
        )
        restored = ContentNode.model_validate_json(node.model_dump_json())
        assert isinstance(restored.derivation_meta, StyleDerivation)
        assert restored.derivation_meta.style_name == "steve-jobs"


class TestSeoItem:
    def test_char_count_and_limit(self):
        item = SeoItem(text="freelancer-bookkeeping", limit=60)
        assert item.char_count == 22
        assert item.within_limit

    def test_over_limit(self):
        assert not SeoItem(text="x" * 61, limit=60).within_limit
