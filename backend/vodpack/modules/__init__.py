"""Application modules.

- transcoding: ffmpeg argument matrix, job runner and HLS/DASH orchestrator
- video: Video upload and transcode endpoint
"""
