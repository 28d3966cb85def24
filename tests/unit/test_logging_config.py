import logging

from sfdash.logging_config import configure_logging


def test_configure_logging_levels(caplog):
    # None: keep default WARNING
    configure_logging(None)
    logger = logging.getLogger("sfdash.test")
    logger.warning("warn")
    assert any("warn" in rec.message for rec in caplog.records)

    caplog.clear()
    configure_logging(logging.INFO)
    logger.info("info-ok")
    assert any("info-ok" in rec.message for rec in caplog.records)

    caplog.clear()
    configure_logging(logging.DEBUG)
    logger.debug("dbg")
    assert any("dbg" in rec.message for rec in caplog.records)


def test_noisy_loggers_quieted_and_soap_logging_opt_in():
    logging.getLogger("zeep.transports").setLevel(logging.NOTSET)

    configure_logging(logging.DEBUG)
    assert logging.getLogger("zeep.wsdl").level == logging.ERROR
    assert logging.getLogger("urllib3.connection").level == logging.ERROR
    assert logging.getLogger("zeep.transports").level == logging.NOTSET

    configure_logging(logging.DEBUG, log_soap=True)
    assert logging.getLogger("zeep.transports").level == logging.DEBUG
