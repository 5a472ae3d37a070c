#!/usr/bin/env python3
"""
TidyUp Backend - Main application entry point
"""
from server import create_app
from socket_events import socketio
import os

app = create_app()

if __name__ == '__main__':
    port = int(os.getenv('PORT', 5000))

    socketio.run(
        app,
        host='0.0.0.0',
        port=port,
        debug=app.config['DEBUG'],
        allow_unsafe_werkzeug=app.config['DEBUG'],
    )
