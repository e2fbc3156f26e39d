from space_expansion.core.config.defaults import DEFAULT_CONFIG, load_and_merge, merge_config


def test_merge_keeps_base_when_no_overrides():
    merged = merge_config(DEFAULT_CONFIG, None)
    assert merged == DEFAULT_CONFIG
    assert merged is not DEFAULT_CONFIG
    assert merged["physics"] is not DEFAULT_CONFIG["physics"]


def test_merge_nested_override_only_touches_given_keys():
    merged = merge_config(DEFAULT_CONFIG, {"physics": {"parameters": {"h0_km_s_mpc": 70.0}}})
    assert merged["physics"]["parameters"]["h0_km_s_mpc"] == 70.0
    assert merged["physics"]["parameters"]["omega_matter"] == 0.315
    assert merged["physics"]["timeline_sample_count"] == 2600


def test_merge_replaces_lists_wholesale():
    merged = merge_config(
        DEFAULT_CONFIG, {"physics": {"a_max_options": [{"value": 10, "label": "big"}]}}
    )
    assert merged["physics"]["a_max_options"] == [{"value": 10, "label": "big"}]


def test_merge_preserves_extra_keys():
    merged = merge_config(DEFAULT_CONFIG, {"custom": {"x": 1}})
    assert merged["custom"] == {"x": 1}


def test_merge_keeps_mismatched_override_for_validation():
    merged = merge_config(
        DEFAULT_CONFIG, {"numeric_safety": "nope", "physics": {"modes": "lcdm", "parameters": 5}}
    )
    assert merged["numeric_safety"] == "nope"
    assert merged["physics"]["modes"] == "lcdm"
    assert merged["physics"]["parameters"] == 5
    assert merged["physics"]["default_mode"] == "lcdm"


def test_merge_does_not_mutate_defaults():
    merge_config(DEFAULT_CONFIG, {"physics": {"default_mode": "linear"}})
    assert DEFAULT_CONFIG["physics"]["default_mode"] == "lcdm"


def test_load_and_merge_partial_file():
    merged = load_and_merge("examples/partial-override.yaml")
    assert merged["physics"]["default_mode"] == "linear"
    assert merged["physics"]["parameters"]["h0_km_s_mpc"] == 73.0
    assert merged["physics"]["parameters"]["omega_lambda"] == 0.685
    assert merged["__file__"].endswith("partial-override.yaml")


def test_load_and_merge_without_file_is_defaults():
    assert load_and_merge(None) == DEFAULT_CONFIG
