"""
CandleFeed – Infrastructure Layer
=================================
Implementaciones concretas de interfaces.

Este módulo contiene:
- event_bus.py: fan-out en memoria (asyncio.Queue)
- external/: APIs externas (Binance) y adaptador de presentación

REGLA DE DEPENDENCIA:
Esta capa implementa interfaces definidas en application/ports/.

Puede importar de:
- domain/ (entidades, excepciones)
- application/ (ports, dto)
- shared/ (config, logging)
"""
