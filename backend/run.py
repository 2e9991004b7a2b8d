from chronos import create_app, socketio

app = create_app()

if __name__ == '__main__':
    # Use SocketIO server so timer ticks reach clients in dev
    socketio.run(app, debug=True)
