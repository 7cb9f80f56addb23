from __future__ import annotations
from prompttester.domain.config.model_config import ModelConfig, ModelConfigs, ModelSelection
from prompttester.domain.exceptions.exceptions import ConfigurationError
from pydantic import ValidationError
from typing import TYPE_CHECKING
import logging

if TYPE_CHECKING:
    from prompttester.storage.kv.protocol import KeyValueStore

logger = logging.getLogger(__name__)

MODEL_CONFIGS_KEY = "model_configs"


class ModelConfigStore:
    """
    Persists the models list, the selected model id and the shared API token.
    """

    def __init__(self, kv: KeyValueStore):
        self.kv: KeyValueStore = kv
        self.configs: ModelConfigs = ModelConfigs()

    def load(self) -> ModelConfigStore:
        raw = self.kv.get(MODEL_CONFIGS_KEY)
        if raw:
            try:
                self.configs = ModelConfigs.model_validate(raw)
            except ValidationError as e:
                raise ConfigurationError(f"Stored model configuration is invalid: {e}") from e
        return self

    def selection(self) -> ModelSelection | None:
        return self.configs.selection()

    def add_model(self, model_id: str, model_name: str = "") -> ModelConfig:
        model_id = model_id.strip()
        if not model_id:
            raise ConfigurationError("Model id cannot be empty.")
        if any(m.model_id == model_id for m in self.configs.models):
            raise ConfigurationError(f"Model '{model_id}' is already configured.")
        model = ModelConfig(
            model_id=model_id,
            model_name=model_name or model_id,
            api_token=self.configs.api_token,
        )
        self.configs.models.append(model)
        self.save()
        return model

    def remove_model(self, model_id: str) -> None:
        models = [m for m in self.configs.models if m.model_id != model_id]
        if len(models) == len(self.configs.models):
            raise ConfigurationError(f"Model '{model_id}' is not configured.")
        selected = self.configs.selected_model_id
        if selected == model_id:
            selected = models[0].model_id if models else None
        self.configs = self.configs.model_copy(
            update={"models": models, "selected_model_id": selected}
        )
        self.save()

    def select_model(self, model_id: str) -> ModelConfig:
        for model in self.configs.models:
            if model.model_id == model_id:
                self.configs.selected_model_id = model_id
                self.save()
                return model
        raise ConfigurationError(f"Model '{model_id}' is not configured.")

    def set_token(self, token: str) -> None:
        self.configs.api_token = token.strip()
        self.save()

    def save(self) -> None:
        self.kv.set(MODEL_CONFIGS_KEY, self.configs.model_dump(mode="json", by_alias=True))
        logger.debug("Persisted model configuration.")
