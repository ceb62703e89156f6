#!/usr/bin/env python3
"""
Vulnerable server demonstrating CBC padding oracle vulnerability
"""

import base64
import binascii

from flask import Flask, request, jsonify

from vaudenay.oracle import BLOCK_SIZE, LocalOracle

SERVER_HOST, SERVER_PORT = "localhost", 5000


def create_app(key=None):
    """Build the oracle service; a random AES key is drawn when key is None"""
    app = Flask(__name__)
    oracle = LocalOracle(key)
    app.config["ORACLE"] = oracle

    @app.route('/api/encrypt', methods=['POST'])
    def encrypt_message():
        """
        Encrypt a message under the server key
        Request: {"message": "string"}
        Response: {"iv": "base64", "ciphertext": "base64"}
        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or not isinstance(data.get('message'), str):
            return jsonify({"error": "Missing 'message' field"}), 400

        blob = oracle.encrypt(data['message'].encode())
        print(f"[INFO] Encrypted {len(data['message'])} characters")

        return jsonify({
            "iv": base64.b64encode(blob[:BLOCK_SIZE]).decode(),
            "ciphertext": base64.b64encode(blob[BLOCK_SIZE:]).decode(),
        })

    @app.route('/api/verify_padding', methods=['POST'])
    def verify_padding():
        """
        Verify if decrypted ciphertext has valid PKCS#7 padding
        Request: {"iv": "base64", "ciphertext": "base64"}
        Response: {"valid": boolean}
        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or not data:
            return jsonify({"error": "No JSON data"}), 400

        for field in ('iv', 'ciphertext'):
            if field not in data:
                return jsonify({"error": f"Missing '{field}' field"}), 400

        try:
            iv = base64.b64decode(data['iv'], validate=True)
            ciphertext = base64.b64decode(data['ciphertext'], validate=True)
        except (binascii.Error, TypeError):
            return jsonify({"valid": False})

        if len(iv) != BLOCK_SIZE or not ciphertext or len(ciphertext) % BLOCK_SIZE != 0:
            return jsonify({"valid": False})

        return jsonify({"valid": oracle.check_padding(iv, ciphertext)})

    @app.route('/status', methods=['GET'])
    def health_check():
        """Health check endpoint"""
        return jsonify({
            "status": "running",
            "service": "CBC Padding Oracle"
        })

    return app


def run(app, host=SERVER_HOST, port=SERVER_PORT):
    print("-" * 60)
    print(f"Starting server on http://{host}:{port}")
    print("Endpoints: /api/encrypt, /api/verify_padding, /status")
    app.run(host=host, port=port)


if __name__ == '__main__':
    run(create_app())
