from utils.event_logger import EventLogger, EventType, get_event_logger, set_event_logger


def test_callbacks_receive_events():
    logger = EventLogger(debug_mode=False)
    received = []
    logger.register_callback(received.append)

    logger.frame_found("#0 'Secure card number input'", purpose="split")
    logger.typing_verified("cardNumber", 0, 19)

    assert [e.event_type for e in received] == [EventType.FRAME_FOUND, EventType.TYPING_VERIFIED]
    assert received[1].details == {"field_name": "cardNumber", "before": 0, "after": 19}
    assert received[1].level == "SUCCESS"


def test_failing_callback_never_breaks_logging():
    logger = EventLogger(debug_mode=False)

    def broken(event):
        raise RuntimeError("consumer bug")

    received = []
    logger.register_callback(broken)
    logger.register_callback(received.append)
    logger.field_skipped("postalCode", "no value given")

    assert len(received) == 1
    assert logger.events_of(EventType.FIELD_SKIPPED)


def test_history_is_bounded():
    logger = EventLogger(debug_mode=False, max_history=3)
    for depth in range(5):
        logger.frame_scan(depth, 1)
    assert [e.details["depth"] for e in logger.history] == [2, 3, 4]
    logger.clear_history()
    assert logger.history == []


def test_debug_mode_prints(capsys):
    logger = EventLogger(debug_mode=True)
    logger.mode_transition("probe_unified", "probe_split", "no unified widget")
    out = capsys.readouterr().out
    assert "probe_unified → probe_split" in out
    assert "reason: no unified widget" in out


def test_unregister_and_global_instance():
    logger = EventLogger(debug_mode=False)
    received = []
    logger.register_callback(received.append)
    logger.unregister_callback(received.append)
    logger.system_info("hello")
    assert received == []

    set_event_logger(logger)
    assert get_event_logger() is logger
