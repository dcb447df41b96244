# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kindling/observers/console.py
from .events import BaseEvent, StatusEnded, StatusStarted


class ConsoleObserver:
    def notify(self, event: BaseEvent) -> None:
        if isinstance(event, StatusStarted):
            print(f" • {event.message} ...", flush=True)
            return
        if isinstance(event, StatusEnded):
            mark = "✓" if event.ok else "✗"
            print(f" {mark} {event.message}", flush=True)
            return

        d = event.dict()
        k = event.__class__.__name__
        print(f"[{d['ts']}] {k} cluster={d['cluster']} provider={d['provider']} data={{"
              + ", ".join(f"{x}={y}" for x, y in d.items() if x not in ('ts', 'run_id', 'cluster', 'provider')) + "}",
              flush=True)
