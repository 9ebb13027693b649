"""In-memory admin backend speaking the {code, message, data} envelope."""

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

UNIQUE_FIELDS = {
    "proxy-services": "service_id",
    "model-sources": "api_key",
}


def envelope(data=None, message: str = "success", code: int = 0) -> dict:
    body = {"code": code, "message": message}
    if data is not None:
        body["data"] = data
    return body


class FakeBackend:
    def __init__(self, token: str = "secret-token", password: str = "pw", system_auth_token: str = "sys-token"):
        self.token = token
        self.password = password
        self.system_auth_token = system_auth_token
        self.collections: dict[str, dict[int, dict]] = {}
        self.calls: list[tuple[str, str, dict]] = []
        self._next_id = 1
        self.app = self._build_app()

    def seed(self, collection: str, rows: list[dict]) -> None:
        table = self.collections.setdefault(collection, {})
        for row in rows:
            record = {"id": self._next_id, **row}
            table[self._next_id] = record
            self._next_id += 1

    def _check_auth(self, request: Request) -> None:
        if request.headers.get("authorization") != f"Bearer {self.token}":
            raise HTTPException(status_code=401, detail="token expired")

    def _build_app(self) -> FastAPI:
        app = FastAPI()

        @app.exception_handler(HTTPException)
        async def envelope_errors(_: Request, exc: HTTPException):
            return JSONResponse(
                status_code=exc.status_code,
                content=envelope(message=str(exc.detail), code=exc.status_code),
            )

        @app.post("/api/auth/login")
        async def login(request: Request):
            body = await request.json()
            if body.get("password") != self.password:
                raise HTTPException(status_code=401, detail="invalid username or password")
            return envelope(
                {"token": self.token, "username": body["username"], "user_info": {"username": body["username"]}},
                message="login success",
            )

        @app.get("/api/auth/me")
        async def me(request: Request):
            self._check_auth(request)
            return envelope({"username": "admin"})

        @app.post("/api-logs/api/{collection}/delete")
        async def purge_logs(collection: str, request: Request):
            body = await request.json()
            self.calls.append(("POST", f"{collection}/delete", body))
            if body.get("system_auth_token") != self.system_auth_token:
                return envelope(message="invalid system auth token", code=1)
            start, end = body["start_time"], body["end_time"]
            if start > end:
                return envelope(message="start time must not be after end time", code=1)
            table = self.collections.get(collection, {})
            doomed = [rid for rid, row in table.items() if start <= row["time"] <= end]
            for rid in doomed:
                del table[rid]
            return envelope({"deleted_count": len(doomed)}, message=f"deleted {len(doomed)} logs")

        @app.get("/api/{collection}")
        async def list_rows(collection: str, request: Request, page: int = 1, page_size: int = 10):
            self._check_auth(request)
            params = dict(request.query_params)
            self.calls.append(("GET", collection, params))
            rows = sorted(self.collections.get(collection, {}).values(), key=lambda r: r["id"])
            keyword = params.get("keyword")
            if keyword:
                rows = [r for r in rows if any(keyword in str(v) for v in r.values())]
            start = (page - 1) * page_size
            return envelope({"total": len(rows), "list": rows[start:start + page_size]})

        @app.get("/api/{collection}/{record_id}")
        async def get_row(collection: str, record_id: int, request: Request):
            self._check_auth(request)
            table = self.collections.get(collection, {})
            if record_id not in table:
                raise HTTPException(status_code=404, detail="record not found")
            return envelope(table[record_id])

        @app.post("/api/{collection}")
        async def create_row(collection: str, request: Request):
            self._check_auth(request)
            body = await request.json()
            self.calls.append(("POST", collection, body))
            unique = UNIQUE_FIELDS.get(collection)
            table = self.collections.setdefault(collection, {})
            if unique and any(r.get(unique) == body.get(unique) for r in table.values()):
                return envelope(message=f"{unique} already exists", code=1001)
            self.seed(collection, [body])
            return envelope(table[self._next_id - 1], message="created")

        @app.put("/api/{collection}/{record_id}")
        async def update_row(collection: str, record_id: int, request: Request):
            self._check_auth(request)
            body = await request.json()
            self.calls.append(("PUT", collection, body))
            table = self.collections.get(collection, {})
            if record_id not in table:
                raise HTTPException(status_code=404, detail="record not found")
            table[record_id].update(body)
            return envelope(table[record_id], message="updated")

        @app.delete("/api/{collection}/{record_id}")
        async def delete_row(collection: str, record_id: int, request: Request):
            self._check_auth(request)
            self.calls.append(("DELETE", collection, {"id": record_id}))
            table = self.collections.get(collection, {})
            if record_id not in table:
                raise HTTPException(status_code=404, detail="record not found")
            del table[record_id]
            return envelope(message="deleted")

        return app
