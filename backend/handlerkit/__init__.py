"""handlerkit: helpers for web request handlers.

Modules:
    - files: multipart uploads with content sniffing, downloads, ensure_dir
    - jsonio: bounded JSON request decoding and JSON responses
    - text: slug conversion and random tokens
    - config: YAML settings for the bundled FastAPI app
"""
