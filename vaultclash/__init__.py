# vaultclash/__init__.py
from .content.balance import POLL_INTERVAL_SECONDS
from .routes import battle_bp
from .sockets import register_battle_socket_handlers

def init_battle(app, socketio):
    app.config.setdefault("BATTLE_POLL_INTERVAL", POLL_INTERVAL_SECONDS)
    app.register_blueprint(battle_bp)
    register_battle_socket_handlers(socketio, poll_interval=app.config["BATTLE_POLL_INTERVAL"])
