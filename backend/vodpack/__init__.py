"""vodpack backend application.

Accepts uploaded videos over HTTP and packages each one for adaptive
streaming as both HLS and DASH by running two ffmpeg encodes in parallel.

Modules:
    - core: Configuration, logging, metrics, tracing, middleware, storage
    - modules.transcoding: Parameter matrix, ffmpeg job runner, orchestrator
    - modules.video: Upload endpoint and upload persistence
"""

__version__ = "0.1.0"
