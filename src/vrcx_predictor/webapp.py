"""FastAPI application exposing the predictor as a local JSON API."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict

from .analyzer import analyze_user
from .config import AnalyzerSettings
from .db import (
    list_display_names,
    list_feed_tables,
    open_database,
    read_online_created_at,
    read_user_events,
    search_display_names,
)
from .errors import EmptyAfterFilter, NoUserRecords
from .models import AnalysisResult, Session
from .paths import get_default_db_path

logger = logging.getLogger(__name__)


class AnalysisRequest(BaseModel):
    display_name: str
    table: Optional[str] = None
    include_global: bool = True
    timezone_id: Optional[str] = None
    created_at_mode: Optional[str] = None
    half_life_days: Optional[int] = None
    history_days: Optional[int] = None
    bin_minutes: Optional[int] = None
    separate_weekday_weekend: Optional[bool] = None
    recent_weeks: Optional[int] = None
    holiday_dates: Optional[List[str]] = None
    special_workday_dates: Optional[List[str]] = None

    model_config = ConfigDict(extra="forbid")


def create_app(
    *,
    db_path: Optional[Path] = None,
    settings: Optional[AnalyzerSettings] = None,
) -> FastAPI:
    """Instantiate the FastAPI application."""
    resolved_db_path = Path(db_path or get_default_db_path())
    resolved_settings = settings or AnalyzerSettings()

    app = FastAPI(title="VRCX Predictor", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.db_path = resolved_db_path
    app.state.settings = resolved_settings

    @app.get("/api/status")
    def status(request: Request) -> Dict[str, Any]:
        db = request.app.state.db_path
        current: AnalyzerSettings = request.app.state.settings
        return {
            "database_path": str(db),
            "database_exists": db.is_file(),
            "timezone_id": current.timezone_id,
            "created_at_mode": current.created_at_mode,
            "bin_minutes": current.bin_minutes,
            "history_days": current.history_days,
        }

    @app.get("/api/tables")
    def tables(request: Request) -> Dict[str, Any]:
        with _connection(request) as conn:
            return {"tables": list_feed_tables(conn)}

    @app.get("/api/users")
    def users(
        request: Request,
        table: Optional[str] = Query(default=None, description="Feed table name."),
        q: Optional[str] = Query(default=None, description="Substring to search for."),
        limit: int = Query(default=200, ge=1, le=1000),
    ) -> Dict[str, Any]:
        with _connection(request) as conn:
            feed = _resolve_table(conn, table)
            try:
                if q:
                    names = search_display_names(conn, feed, q, limit=limit)
                else:
                    names = list_display_names(conn, feed, limit=limit)
            except ValueError as exc:
                raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"table": feed, "users": names}

    @app.post("/api/analysis")
    def analysis(payload: AnalysisRequest, request: Request) -> Dict[str, Any]:
        try:
            run_settings = AnalyzerSettings.from_options(
                timezone_id=payload.timezone_id,
                created_at_mode=payload.created_at_mode,
                half_life_days=payload.half_life_days,
                history_days=payload.history_days,
                bin_minutes=payload.bin_minutes,
                separate_weekday_weekend=payload.separate_weekday_weekend,
                recent_weeks=payload.recent_weeks,
                holiday_dates=payload.holiday_dates,
                special_workday_dates=payload.special_workday_dates,
                base=request.app.state.settings,
            )
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        with _connection(request) as conn:
            feed = _resolve_table(conn, payload.table)
            try:
                raw_events = read_user_events(conn, feed, payload.display_name)
                global_created_at = (
                    read_online_created_at(conn, feed) if payload.include_global else None
                )
            except ValueError as exc:
                raise HTTPException(status_code=400, detail=str(exc)) from exc

        try:
            result = analyze_user(
                raw_events, run_settings, global_created_at=global_created_at
            )
        except NoUserRecords as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except EmptyAfterFilter as exc:
            logger.info("Nothing to analyze for %r: %s", payload.display_name, exc)
            raise HTTPException(status_code=422, detail=str(exc)) from exc

        payload_out = _result_to_payload(result)
        payload_out["display_name"] = payload.display_name
        payload_out["table"] = feed
        return payload_out

    return app


@contextmanager
def _connection(request: Request) -> Iterator[sqlite3.Connection]:
    try:
        conn = open_database(request.app.state.db_path)
    except FileNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    try:
        yield conn
    finally:
        conn.close()


def _resolve_table(conn: Any, table: Optional[str]) -> str:
    if table:
        return table
    tables = list_feed_tables(conn)
    if not tables:
        raise HTTPException(status_code=404, detail="No online/offline feed tables found")
    return tables[0]


def _session_to_payload(session: Session) -> Dict[str, Any]:
    return {
        "start": session.start.isoformat(),
        "end": session.end.isoformat(),
        "duration_hours": session.duration_hours,
        "is_open": session.is_open,
    }


def _result_to_payload(result: AnalysisResult) -> Dict[str, Any]:
    window = result.best_window
    quality = result.data_quality
    return {
        "is_online_now": result.is_online_now,
        "last_event_type": result.last_event_type,
        "last_event_time": result.last_event_time.isoformat(),
        "session_count": result.session_count,
        "avg_duration_hours": result.avg_duration_hours,
        "avg_start_interval_hours": result.avg_start_interval_hours,
        "recent_active_hours": result.recent_active_hours_text,
        "confidence": result.confidence_label,
        "prob_next_2_hours": result.prob_next_2_hours,
        "stability": {
            "label": result.stability_label,
            "std_hours": result.stability_std_hours,
        },
        "best_window": {
            "start": window.start.isoformat(),
            "end": window.end.isoformat(),
            "peak": window.peak,
        },
        "probability_matrix": result.probability_matrix.tolist(),
        "global_online_matrix": (
            result.global_online_matrix.tolist()
            if result.global_online_matrix is not None
            else None
        ),
        "sessions": [_session_to_payload(s) for s in result.sessions],
        "data_quality": {
            "unknown_type": quality.unknown_type,
            "malformed_timestamp": quality.malformed_timestamp,
            "future_timestamp": quality.future_timestamp,
            "outside_history": quality.outside_history,
            "malformed_global": quality.malformed_global,
            "invalid_dates": quality.invalid_dates,
        },
    }
