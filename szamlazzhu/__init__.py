# szamlazzhu/__init__.py
"""
Cliente Django para el Agente XML de Számlázz.hu (facturas, proformas,
recibos y consulta de contribuyentes).

Uso habitual:

    from szamlazzhu.services.client import get_client

    client = get_client()
    response = client.upload_invoice(invoice)
"""
