from typing import Any

from shared.clients.ClientError import ClientResponseError
from shared.helper.HelperConfig import HelperConfig
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.models.config import EnvConfig


class RAGClientQdrant(RAGClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")
        self._collection_name = self.get_config_val("COLLECTION", default="documents", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Qdrant"

    def get_collection_name(self) -> str:
        return self._collection_name

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
            EnvConfig(env_key="COLLECTION", val_type="string", default="documents"),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"api-key": f"{self._api_key}"}
        else:
            return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/healthz"

    def _get_endpoint_points(self) -> str:
        return f"/collections/{self._collection_name}/points"

    def _get_endpoint_search(self) -> str:
        return f"/collections/{self._collection_name}/points/search"

    def _get_endpoint_delete_points(self) -> str:
        return f"/collections/{self._collection_name}/points/delete"

    def _get_endpoint_check_collection_existence(self) -> str:
        return f"/collections/{self._collection_name}/exists"

    def _get_endpoint_collection(self) -> str:
        return f"/collections/{self._collection_name}"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def _build_filter(self, filters: dict[str, Any]) -> dict:
        return {"must": [{"key": key, "match": {"value": value}} for key, value in filters.items()]}

    def get_create_collection_payload(self) -> dict:
        return {
            "vectors": {
                "size": self.vector_size,
                "distance": self.distance,
            },
            "optimizers_config": {"default_segment_number": 2},
            "replication_factor": 1,
        }

    def get_upsert_payload(self, points: list[dict[str, Any]]) -> dict:
        return {"points": points}

    def get_search_payload(self, query_vector: list[float], limit: int, score_threshold: float | None, filters: dict[str, Any] | None) -> dict:
        payload: dict[str, Any] = {
            "vector": query_vector,
            "limit": limit,
            "with_payload": True,
            "with_vector": False,
        }
        if score_threshold is not None:
            payload["score_threshold"] = score_threshold
        if filters:
            payload["filter"] = self._build_filter(filters)
        return payload

    def get_delete_payload(self, filters: dict[str, Any]) -> dict:
        return {"filter": self._build_filter(filters)}

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_existence(self, raw_response: dict) -> bool:
        return bool(raw_response.get("result", {}).get("exists"))

    def extract_search_hits(self, raw_response: dict) -> list[dict]:
        result = raw_response.get("result")
        if not isinstance(result, list):
            raise ClientResponseError(
                f"Qdrant search response has no result list. Response keys: {list(raw_response.keys())}",
                engine=self.get_engine_name(),
            )
        return result

    def extract_collection_info(self, raw_response: dict) -> dict[str, Any]:
        result = raw_response.get("result", {})
        return {
            "name": self._collection_name,
            "status": result.get("status"),
            "points_count": result.get("points_count"),
            "vectors_count": result.get("vectors_count", result.get("indexed_vectors_count")),
        }
