import pytest

from prompttester.domain.config.model_config import ModelConfigs, ModelSelection
from prompttester.domain.exceptions.exceptions import ConfigurationError
from prompttester.storage.kv.memory_store import MemoryStore
from prompttester.storage.model_config_store import MODEL_CONFIGS_KEY, ModelConfigStore
from tests.factories import ModelConfigFactory


@pytest.fixture
def models(kv) -> ModelConfigStore:
    return ModelConfigStore(kv).load()


def test_empty_store_has_no_selection(models):
    assert models.configs.models == []
    assert models.selection() is None


def test_first_model_is_used_when_nothing_is_selected(models):
    models.add_model("gpt-4o", "GPT-4o")
    models.add_model("gpt-4o-mini")
    models.set_token("sk-abc")

    assert models.selection() == ModelSelection(
        model_id="gpt-4o", model_name="GPT-4o", api_token="sk-abc"
    )


def test_name_defaults_to_id(models):
    added = models.add_model("  claude-x  ")

    assert added.model_id == "claude-x"
    assert added.model_name == "claude-x"


@pytest.mark.parametrize("model_id", ["", "   "])
def test_empty_model_id_is_refused(models, model_id):
    with pytest.raises(ConfigurationError):
        models.add_model(model_id)


def test_duplicate_model_is_refused(models):
    models.add_model("gpt-4o")

    with pytest.raises(ConfigurationError, match="already configured"):
        models.add_model("gpt-4o")


def test_select_model(models):
    models.add_model("a")
    models.add_model("b")

    models.select_model("b")

    assert models.selection().model_id == "b"


def test_select_unknown_model_is_refused(models):
    with pytest.raises(ConfigurationError):
        models.select_model("nope")


def test_removing_selected_model_falls_back_to_first_remaining(models):
    models.add_model("a")
    models.add_model("b")
    models.add_model("c")
    models.select_model("b")

    models.remove_model("b")

    assert models.configs.selected_model_id == "a"
    assert [m.model_id for m in models.configs.models] == ["a", "c"]


def test_removing_last_model_clears_selection(models):
    models.add_model("only")
    models.select_model("only")

    models.remove_model("only")

    assert models.configs.selected_model_id is None
    assert models.selection() is None


def test_remove_unknown_model_is_refused(models):
    with pytest.raises(ConfigurationError):
        models.remove_model("ghost")


def test_dangling_selected_id_yields_no_selection():
    configs = ModelConfigs(models=[ModelConfigFactory(model_id="a")], selected_model_id="gone")

    assert configs.selected_model is None
    assert configs.selection() is None


def test_persisted_with_camel_case_keys(kv, models):
    models.add_model("gpt-4o", "GPT-4o")
    models.select_model("gpt-4o")
    models.set_token(" sk-abc ")

    raw = kv.get(MODEL_CONFIGS_KEY)

    assert raw["selectedModelId"] == "gpt-4o"
    assert raw["apiToken"] == "sk-abc"
    assert raw["models"][0]["modelId"] == "gpt-4o"
    assert raw["models"][0]["modelName"] == "GPT-4o"


def test_reload_reads_camel_case_state(kv, models):
    models.add_model("gpt-4o")
    models.set_token("sk-abc")

    reloaded = ModelConfigStore(kv).load()

    assert reloaded.selection() == models.selection()


def test_invalid_stored_configuration_is_a_configuration_error():
    kv = MemoryStore({MODEL_CONFIGS_KEY: {"models": [{"modelName": "no id"}]}})

    with pytest.raises(ConfigurationError, match="invalid"):
        ModelConfigStore(kv).load()
