"""
CandleFeed – Presentation Layer
===============================
API HTTP y WebSocket.

Este módulo contiene:
- api/: FastAPI routes y schemas
- websocket/: broadcast del estado del gráfico

REGLA DE DEPENDENCIA:
Esta capa llama a use cases de application/ y a servicios puros de domain/.
"""
