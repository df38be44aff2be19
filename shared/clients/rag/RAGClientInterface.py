from abc import abstractmethod
from typing import Any

from shared.clients.ClientError import ClientError, ClientResponseError
from shared.clients.ClientInterface import ClientInterface
from shared.clients.rag.VectorStoreInterface import VectorStoreInterface
from shared.clients.rag.models.VectorPoint import VectorPoint, make_point_id
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import Document, DocumentChunk, SearchResult

UPSERT_BATCH_SIZE = 100  # max points per upsert call


class RAGClientInterface(ClientInterface, VectorStoreInterface):
    """HTTP vector database client.

    The request flow (payload building, status checks, response mapping) lives
    here; concrete engines only provide endpoints, payload shapes and response
    parsers. Every failure surfaces as a ClientError, no retries are made.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self.vector_size = int(helper_config.get_number_val("EMBED_DIMENSIONS", default=1536))
        self.distance = helper_config.get_string_val(f"{self.get_client_type().upper()}_DISTANCE", default="Cosine")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "rag"
        """
        return "rag"

    @abstractmethod
    def get_collection_name(self) -> str:
        """Returns the name of the collection holding all chunks."""
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_points(self) -> str:
        """
        Returns the endpoint path for points upsert requests.

        Returns:
            str: The endpoint path for points requests (e.g. "/points")
        """
        pass

    @abstractmethod
    def _get_endpoint_search(self) -> str:
        """
        Returns the endpoint path for vector similarity search requests.

        Returns:
            str: The endpoint path (e.g. "/collections/my_col/points/search")
        """
        pass

    @abstractmethod
    def _get_endpoint_delete_points(self) -> str:
        """
        Returns the endpoint path for deleting points by filter.

        Returns:
            str: The endpoint path (e.g. "/collections/my_col/points/delete")
        """
        pass

    @abstractmethod
    def _get_endpoint_check_collection_existence(self) -> str:
        """
        Returns the endpoint path for collection existence check requests.

        Returns:
            str: The endpoint path for collection existence check requests (e.g. "/existence_check")
        """
        pass

    @abstractmethod
    def _get_endpoint_collection(self) -> str:
        """
        Returns the endpoint path of the collection itself (create, info, drop).

        Returns:
            str: The endpoint path (e.g. "/collections/my_col")
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_create_collection_payload(self) -> dict:
        """Builds the backend-specific request payload for creating the collection."""
        pass

    @abstractmethod
    def get_upsert_payload(self, points: list[dict[str, Any]]) -> dict:
        """Builds the backend-specific request payload for an upsert of prepared points."""
        pass

    @abstractmethod
    def get_search_payload(self, query_vector: list[float], limit: int, score_threshold: float | None, filters: dict[str, Any] | None) -> dict:
        """
        Builds the backend-specific request payload for a similarity search.

        Args:
            query_vector (list[float]): The query embedding.
            limit (int): Maximum number of hits.
            score_threshold (float | None): Minimum score of a hit.
            filters (dict[str, Any] | None): Equality conditions on (dotted) payload keys.

        Returns:
            dict: The payload for the search request.
        """
        pass

    @abstractmethod
    def get_delete_payload(self, filters: dict[str, Any]) -> dict:
        """
        Builds the backend-specific request payload for a filter-based delete.

        Args:
            filters (dict[str, Any]): Equality conditions identifying the points to delete.

        Returns:
            dict: The payload for the delete request.
        """
        pass

    ################ RESPONSE PARSER ##################
    @abstractmethod
    def extract_existence(self, raw_response: dict) -> bool:
        """Extracts the exists flag from a raw existence check response."""
        pass

    @abstractmethod
    def extract_search_hits(self, raw_response: dict) -> list[dict]:
        """
        Extracts the hits from a raw search response.

        Returns:
            list[dict]: Hits with "id", "score" and "payload" keys.
        """
        pass

    @abstractmethod
    def extract_collection_info(self, raw_response: dict) -> dict[str, Any]:
        """Extracts name, status, points_count and vectors_count from a raw collection info response."""
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_existence_check(self) -> bool:
        """Check if the collection exists in the rag backend.

        Returns:
            bool: True if the collection exists, False otherwise.
        """
        resp = await self.do_request(
            method="GET",
            endpoint=self._get_endpoint_check_collection_existence(),
            raise_on_error=True,
        )
        return self.extract_existence(resp.json())

    async def do_create_collection(self) -> None:
        """Create the collection with the configured vector size and distance."""
        await self.do_request(
            method="PUT",
            json=self.get_create_collection_payload(),
            endpoint=self._get_endpoint_collection(),
            raise_on_error=True,
        )
        self.logging.info(
            "Created %s collection %r (size=%d, distance=%s).",
            self.get_engine_name(), self.get_collection_name(), self.vector_size, self.distance,
        )

    async def do_upsert_points(self, points: list[dict[str, Any]]) -> None:
        """Upsert prepared points into the collection.
        Inserts new points or replaces existing ones if a point with the same ID already exists.

        Args:
            points (list[dict[str, Any]]): The list of points to upsert.
        """
        await self.do_request(
            method="PUT",
            json=self.get_upsert_payload(points),
            endpoint=self._get_endpoint_points(),
            params={"wait": "true"},
            raise_on_error=True,
        )

    async def do_delete_points_by_filter(self, filters: dict[str, Any]) -> None:
        """Deletes all points matching the given equality filter.

        Args:
            filters (dict[str, Any]): The filter that identifies which points to delete.
        """
        await self.do_request(
            method="POST",
            json=self.get_delete_payload(filters),
            endpoint=self._get_endpoint_delete_points(),
            params={"wait": "true"},
            raise_on_error=True,
        )

    ##########################################
    ########### VECTOR STORE OPS #############
    ##########################################

    async def ensure_collection(self) -> None:
        if await self.do_existence_check():
            self.logging.info("Collection %r already exists.", self.get_collection_name())
            return
        await self.do_create_collection()

    async def upsert(self, chunks: list[DocumentChunk], document: Document) -> None:
        points: list[dict] = []
        for chunk in chunks:
            if not chunk.embedding:
                raise ValueError(f"Chunk {chunk.id!r} has no embedding and cannot be stored.")
            points.append({
                "id": make_point_id(chunk.id),
                "vector": chunk.embedding,
                "payload": VectorPoint.from_chunk(chunk, document).to_payload(),
            })

        self.logging.info("Storing %d chunks for document %r ('%s').", len(points), document.id, document.title)
        try:
            for batch_start in range(0, len(points), UPSERT_BATCH_SIZE):
                await self.do_upsert_points(points[batch_start: batch_start + UPSERT_BATCH_SIZE])
        except ClientError:
            # earlier batches may already be acknowledged; leave no partial document behind
            if len(points) > UPSERT_BATCH_SIZE:
                try:
                    await self.delete_by_document_id(document.id)
                except ClientError as cleanup_error:
                    self.logging.error(
                        "Cleanup of partially stored document %r failed: %s", document.id, cleanup_error
                    )
            raise

    async def search(
        self,
        query_vector: list[float],
        limit: int,
        score_threshold: float | None = None,
        filters: dict[str, Any] | None = None,
    ) -> list[SearchResult]:
        resp = await self.do_request(
            method="POST",
            json=self.get_search_payload(query_vector, limit, score_threshold, filters),
            endpoint=self._get_endpoint_search(),
            raise_on_error=True,
        )
        results: list[SearchResult] = []
        for hit in self.extract_search_hits(resp.json()):
            try:
                point = VectorPoint.model_validate(hit.get("payload") or {})
            except ValueError as e:
                raise ClientResponseError(
                    f"Point {hit.get('id')!r} carries an invalid payload: {e}", engine=self.get_engine_name()
                ) from e
            results.append(point.to_search_result(score=float(hit.get("score") or 0.0)))
        self.logging.debug("Search returned %d hit(s).", len(results))
        return results

    async def delete_by_document_id(self, document_id: str) -> None:
        await self.do_delete_points_by_filter({"documentId": document_id})
        self.logging.info("Deleted all points of document %r.", document_id)

    async def get_collection_info(self) -> dict[str, Any]:
        resp = await self.do_request(
            method="GET",
            endpoint=self._get_endpoint_collection(),
            raise_on_error=True,
        )
        return self.extract_collection_info(resp.json())

    async def health_check(self) -> bool:
        """Probe the backend. Never raises: any failure is reported as False."""
        try:
            resp = await self.do_healthcheck()
        except ClientError as e:
            self.logging.warning("%s health check failed: %s", self.get_engine_name(), e)
            return False
        return resp.is_success

    async def clear_collection(self) -> None:
        await self.do_request(
            method="DELETE",
            endpoint=self._get_endpoint_collection(),
            raise_on_error=True,
        )
        self.logging.info("Dropped collection %r, recreating it.", self.get_collection_name())
        await self.do_create_collection()
