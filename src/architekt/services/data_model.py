"""DataModelService: reusable data models and their attribute trees."""

from __future__ import annotations

import logging
from typing import Any

from architekt.domain.attributes import index_attributes, sanitize_attribute_list
from architekt.domain.coerce import ensure_string
from architekt.domain.components import get_data_model_or_raise, strip_data_model_references
from architekt.domain.ids import new_id
from architekt.domain.models import DataModel
from architekt.services._helpers import as_input, replace_name, replace_text, require_name
from architekt.services.base import BaseService
from architekt.services.telemetry import traced

logger = logging.getLogger(__name__)


class DataModelService(BaseService):
    """Create, read, update and delete data models."""

    @traced
    def list_data_models(self, project_id: str) -> list[DataModel]:
        project = self._get_project(self._snapshot(), project_id)
        return list(project.data_models.values())

    @traced
    def get_data_model(self, project_id: str, data_model_id: str) -> DataModel:
        project = self._get_project(self._snapshot(), project_id)
        return get_data_model_or_raise(project, data_model_id)

    @traced
    def create_data_model(self, project_id: str, data: Any) -> DataModel:
        fields = as_input(data)
        name = require_name(fields, "Data model")

        with self._transaction() as aggregate:
            project = self._get_project(aggregate, project_id)
            data_model = DataModel(
                id=new_id(),
                name=name,
                description=ensure_string(fields.get("description")),
                attributes=sanitize_attribute_list(fields.get("attributes")),
            )
            project.data_models[data_model.id] = data_model

        logger.info("Created data model %s in project %s", data_model.id, project_id)
        return data_model

    @traced
    def update_data_model(self, project_id: str, data_model_id: str, changes: Any) -> DataModel:
        """Apply a partial update.

        A present ``attributes`` list is merged against the current tree:
        submitted ids that match keep their identity, and nested keys the
        caller omits keep their previous values.
        """
        fields = as_input(changes)
        with self._transaction() as aggregate:
            project = self._get_project(aggregate, project_id)
            data_model = get_data_model_or_raise(project, data_model_id)

            name = replace_name(fields, data_model.name, "Data model")
            description = replace_text(fields, "description", data_model.description)
            attributes = data_model.attributes
            if "attributes" in fields:
                attributes = sanitize_attribute_list(
                    fields["attributes"], index_attributes(data_model.attributes)
                )

            data_model.name = name
            data_model.description = description
            data_model.attributes = attributes
        return data_model

    @traced
    def delete_data_model(self, project_id: str, data_model_id: str) -> None:
        """Delete a data model and drop its id from entry point references."""
        with self._transaction() as aggregate:
            project = self._get_project(aggregate, project_id)
            get_data_model_or_raise(project, data_model_id)
            del project.data_models[data_model_id]
            strip_data_model_references(project, data_model_id)
        logger.info("Deleted data model %s from project %s", data_model_id, project_id)
