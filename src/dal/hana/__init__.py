"""SAP HANA-backed DAL components.

Requires the ``hdbcli`` driver (``pip install .[hana]``); import
``dal.hana.executor`` directly so the driver stays optional.
"""
