# szamlazzhu/services/__init__.py
"""
Servicios de integración con Számlázz.hu:

- Registro de acciones (nombre de campo, raíz y namespace por operación).
- Construcción de documentos XML (lxml) y parseo de respuestas.
- Clasificación de errores remotos.
- Transporte HTTP (requests) y guardado de PDFs (Django storages).

El punto de entrada es `szamlazzhu.services.client.SzamlazzHuClient`.
"""
