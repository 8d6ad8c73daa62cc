#!/usr/bin/env python3
# ruff: noqa: E402
from __future__ import annotations

import argparse
import json
import os
import platform
import sys
from typing import Any, Dict, List

# Ensure repo root (which contains `src/`) is importable when running directly
REPO_ROOT = os.path.dirname(os.path.dirname(__file__))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from src.config import Difficulty
from src.engine.board import STARTPOS_FEN, Board
from src.engine.move import Color, square_to_str
from src.search.service import SearchResult, SearchService


POSITIONS: Dict[str, str] = {
    "startpos": STARTPOS_FEN,
    "italian": "r1bqk1nr/pppp1ppp/2n5/2b1p3/2B1P3/5N2/PPPP1PPP/RNBQK2R w KQkq - 4 4",
    "hanging_queen": "4k3/8/8/3q4/8/8/8/3RK3 w - - 0 1",
    "castling": "r3k2r/pppq1ppp/2n2n2/3pp3/3PP3/2N2N2/PPPQ1PPP/R3K2R b KQkq - 0 1",
}


def _row(name: str, fen: str, res: SearchResult, pruning: bool, cache: bool) -> Dict[str, Any]:
    best = None
    if res.best_move is not None:
        piece, dest = res.best_move
        best = square_to_str(piece.square) + square_to_str(dest)
    return {
        "name": name,
        "fen": fen,
        "depth": res.depth,
        "pruning": pruning,
        "cache": cache,
        "best_move": best,
        "score": res.score,
        "nodes": res.nodes,
        "cache_hits": res.cache_hits,
        "cache_size": res.cache_size,
        "time_ms": res.time_ms,
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Benchmark the minimax search over fixed positions")
    parser.add_argument(
        "--difficulty",
        choices=[d.value for d in Difficulty],
        default=Difficulty.MEDIUM.value,
        help="Depth tier to search at (default: medium)",
    )
    parser.add_argument("--depth", type=int, default=None, help="Explicit depth; overrides --difficulty")
    parser.add_argument("--position", choices=sorted(POSITIONS), action="append", help="Limit to these positions")
    parser.add_argument("--no-pruning", action="store_true", help="Search the full tree")
    parser.add_argument("--no-cache", action="store_true", help="Disable the transposition cache")
    args = parser.parse_args()

    depth = args.depth or Difficulty(args.difficulty).depth
    pruning = not args.no_pruning
    cache = not args.no_cache
    names = args.position or list(POSITIONS)

    svc = SearchService()
    rows: List[Dict[str, Any]] = []
    for name in names:
        fen = POSITIONS[name]
        board = Board.from_fen(fen)
        color = Color.WHITE if fen.split()[1] == "w" else Color.BLACK
        res = svc.search(board, color, depth, enable_pruning=pruning, use_cache=cache)
        rows.append(_row(name, fen, res, pruning, cache))

    total_nodes = sum(r["nodes"] for r in rows)
    total_ms = sum(r["time_ms"] for r in rows)
    out = {
        "python": platform.python_version(),
        "depth": depth,
        "positions": rows,
        "total": {
            "nodes": total_nodes,
            "time_ms": total_ms,
            "nps": int(total_nodes * 1000 / max(total_ms, 1)),
        },
    }
    print(json.dumps(out, indent=2))


if __name__ == "__main__":
    main()
