"""
Model configuration as the settings panel stores it.
Field aliases keep the persisted JSON in camelCase (modelId, apiToken, ...).
"""

from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field


class ModelConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    model_id: str = Field(..., alias="modelId")
    model_name: str = Field(default="", alias="modelName")
    api_token: str = Field(default="", alias="apiToken")


class ModelSelection(BaseModel):
    """
    What the completion client needs to make a call.
    Passed explicitly; nothing reads it from ambient state.
    """

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model_id: str
    model_name: str = ""
    api_token: str = ""


class ModelConfigs(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    models: list[ModelConfig] = Field(default_factory=list)
    selected_model_id: str | None = Field(default=None, alias="selectedModelId")
    api_token: str = Field(default="", alias="apiToken")

    @property
    def selected_model(self) -> ModelConfig | None:
        if self.selected_model_id:
            for model in self.models:
                if model.model_id == self.selected_model_id:
                    return model
            return None
        return self.models[0] if self.models else None

    def selection(self) -> ModelSelection | None:
        model = self.selected_model
        if model is None:
            return None
        return ModelSelection(
            model_id=model.model_id,
            model_name=model.model_name,
            api_token=self.api_token,
        )
