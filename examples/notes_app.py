"""
Notes API - a small Trellis application.

Run with:
    trellis serve examples.notes_app:server --log-level debug

Routes:
    GET    /api/health
    GET    /api/notes
    GET    /api/notes/:id
    POST   /api/notes          (X-Api-Key required when JWT_SECRET is set)
    DELETE /api/notes/:id      (X-Api-Key required when JWT_SECRET is set)
"""

import logging
from itertools import count

from trellis import (
    DELETE,
    GET,
    POST,
    Body,
    Param,
    Settings,
    TrellisServer,
    UseFilters,
    UseGuards,
    UseMiddleware,
    UsePipes,
    controller,
    injectable,
)


logger = logging.getLogger("notes")


class NoteNotFound(LookupError):
    pass


@injectable(Settings)
class NoteStore:
    """In-memory store shared by every request."""

    def __init__(self, settings):
        self.settings = settings
        self._notes = {}
        self._ids = count(1)

    def list(self):
        return list(self._notes.values())

    def get(self, note_id):
        try:
            return self._notes[note_id]
        except KeyError:
            raise NoteNotFound(note_id) from None

    def add(self, title, text):
        note = {"id": next(self._ids), "title": title, "text": text}
        self._notes[note["id"]] = note
        return note

    def remove(self, note_id):
        self.get(note_id)
        del self._notes[note_id]


class ApiKeyGuard:
    def __init__(self, settings):
        self.secret = settings.jwt_secret

    def __call__(self, ctx):
        if not self.secret:
            return True
        return ctx.request.header("x-api-key") == self.secret


def to_int(value, meta):
    if meta.key == "id":
        return int(value)
    return value


def strip_strings(value, meta):
    return value.strip() if isinstance(value, str) else value


def not_found(error, ctx):
    if isinstance(error, NoteNotFound):
        ctx.response.set_status(404).send_json({"error": f"Note {error} not found"})


def bad_input(error, ctx):
    if isinstance(error, (ValueError, TypeError)):
        ctx.response.set_status(400).send_json({"error": str(error)})


def log_request(req, res, next):
    logger.info(f"{req.method} {req.path}")
    return next()


settings = Settings.from_env()

# Guards are plain callables; this one reads settings once at startup
api_key = ApiKeyGuard(settings)


@controller("health")
class HealthController:
    @GET()
    def health(self, req, res, next):
        return {"status": "ok"}


@controller("notes", deps=[NoteStore])
class NotesController:
    def __init__(self, store):
        self.store = store

    @GET()
    def list(self, req, res, next):
        return self.store.list()

    @GET(":id")
    @Param(0, "id")
    @UsePipes(to_int)
    @UseFilters(bad_input, not_found)
    def show(self, note_id, req, res, next):
        return self.store.get(note_id)

    @POST()
    @UseGuards(api_key)
    @Body(0, "title")
    @Body(1, "text")
    @UsePipes(strip_strings)
    @UseFilters(bad_input)
    def create(self, title, text, req, res, next):
        if not title:
            raise ValueError("title is required")
        res.set_status(201).send_json(self.store.add(title, text or ""))

    @DELETE(":id")
    @UseGuards(api_key)
    @UseMiddleware(log_request)
    @Param(0, "id")
    @UsePipes(to_int)
    @UseFilters(bad_input, not_found)
    def remove(self, note_id, req, res, next):
        self.store.remove(note_id)
        return {"deleted": note_id}


server = TrellisServer([HealthController, NotesController], settings, middlewares=[log_request])


if __name__ == "__main__":
    server.run(port=settings.port)
