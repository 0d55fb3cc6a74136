import json
import typing as t

import httpx

BASE_URL = "http://testserver"


class FakeJSONAPIServer:
    """
    Emulate a JSON:API server holding records per collection path.
    """

    def __init__(self, records: dict[str, list[dict[str, t.Any]]] | None = None) -> None:
        self._collections: dict[str, dict[str, dict[str, t.Any]]] = {}
        self.requests: list[httpx.Request] = []
        self.omit_ids: set[str] = set()
        self.fail_with_status: int | None = None
        self.raise_error: Exception | None = None
        self._counter = 100
        for collection, items in (records or {}).items():
            for item in items:
                self.add(collection=collection, record=item)

    def add(self, *, collection: str, record: dict[str, t.Any]) -> None:
        self._collections.setdefault(collection, {})[str(record["id"])] = record

    def _json_response(self, *, status_code: int, payload: dict[str, t.Any]) -> httpx.Response:
        return httpx.Response(
            status_code=status_code,
            json=payload,
            headers={"content-type": "application/vnd.api+json"},
        )

    def _not_found(self, *, detail: str) -> httpx.Response:
        return self._json_response(
            status_code=404,
            payload={"errors": [{"status": "404", "title": "Not Found", "detail": detail}]},
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        """
        Route a request to the fake collections.

        Parameters
        ----------
        request : httpx.Request
            Incoming HTTP request.

        Returns
        -------
        httpx.Response
            JSON:API response.
        """
        self.requests.append(request)
        if self.raise_error is not None:
            raise self.raise_error
        if self.fail_with_status is not None:
            return self._json_response(
                status_code=self.fail_with_status,
                payload={"errors": [{"status": str(self.fail_with_status), "title": "Boom"}]},
            )

        segments = [segment for segment in request.url.path.split("/") if segment]
        collection = segments[0]
        records = self._collections.setdefault(collection, {})

        if len(segments) == 1:
            if request.method == "GET":
                id_filter = request.url.params.get("filter[id]")
                if id_filter is None:
                    data = list(records.values())
                else:
                    requested = set(id_filter.split(","))
                    data = [
                        record
                        for id, record in records.items()
                        if id in requested and id not in self.omit_ids
                    ]
                return self._json_response(status_code=200, payload={"data": data})
            if request.method == "POST":
                resource = json.loads(request.content)["data"]
                if "id" not in resource:
                    self._counter += 1
                    resource["id"] = str(self._counter)
                records[resource["id"]] = resource
                return self._json_response(status_code=201, payload={"data": resource})

        id = segments[1]
        if request.method == "DELETE":
            records.pop(id, None)
            return httpx.Response(status_code=204)
        if request.method == "PATCH":
            resource = json.loads(request.content)["data"]
            records[id] = resource
            return self._json_response(status_code=200, payload={"data": resource})
        if id not in records or id in self.omit_ids:
            return self._not_found(detail=f"{collection}/{id}")
        return self._json_response(status_code=200, payload={"data": records[id]})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client_factory(self) -> t.Callable[[], httpx.AsyncClient]:
        mock_transport = self.transport()
        return lambda: httpx.AsyncClient(transport=mock_transport, base_url=BASE_URL)


def widget(id: str, name: str | None = None) -> dict[str, t.Any]:
    return {"type": "widgets", "id": id, "attributes": {"name": name or f"widget {id}"}}


def blog_post(id: str, title: str | None = None) -> dict[str, t.Any]:
    return {"type": "blog-posts", "id": id, "attributes": {"title": title or f"post {id}"}}
