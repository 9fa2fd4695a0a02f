"""Main entrypoint for the CodeIDE backend."""
from config import get_settings
from interact import create_app, socketio

app = create_app()

if __name__ == "__main__":
    # socketio.run serves both HTTP and the WebSocket transport
    socketio.run(app, host="0.0.0.0", port=get_settings().port, allow_unsafe_werkzeug=True)
