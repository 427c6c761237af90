"""perfscope - web performance measurement and advisory engine.

Quick Start:
    from perfscope.config import PerfscopeConfig
    from perfscope.engine import build_engine

    engine = build_engine(PerfscopeConfig())
    epoch = engine.aggregator.start_navigation()

    # Feed timing events from the browser instrumentation layer
    engine.aggregator.start_request("r1", "https://example.com/", "GET", t0, epoch=epoch)
    engine.aggregator.mark_response_start("r1", t1, epoch=epoch)
    engine.aggregator.mark_response_end("r1", t2, epoch=epoch)
    engine.aggregator.finalize("r1", 200, {"Content-Type": "text/html"}, epoch=epoch)

    report = engine.analyze(budget="desktop-standard")
"""

__version__ = "0.1.0"
