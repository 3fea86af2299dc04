from handsignal.gesture_classifier import Gesture
from handsignal.publisher import HandData, HandDataPublisher


def test_publish_delivers_fresh_record():
    publisher = HandDataPublisher()
    received = []
    publisher.on_hand_data(received.append)

    publisher.publish(Gesture.PINCH, 0.25, 0.75, True)
    publisher.publish(Gesture.PINCH, 0.25, 0.75, True)

    # No deduplication: identical values are still delivered every time
    assert received == [HandData(Gesture.PINCH, 0.25, 0.75, True)] * 2
    assert received[0] is not received[1]


def test_failing_handler_does_not_stop_others():
    publisher = HandDataPublisher()
    received = []

    def broken(data):
        raise RuntimeError("consumer bug")

    publisher.on_hand_data(broken)
    publisher.on_hand_data(received.append)

    data = publisher.publish(Gesture.NONE, 0.5, 0.5, False)

    assert received == [data]


def test_remove_handler():
    publisher = HandDataPublisher()
    received = []
    publisher.on_hand_data(received.append)
    publisher.remove_handler(received.append)

    publisher.publish(Gesture.OPEN_PALM, 0.1, 0.2, True)

    assert received == []


def test_to_dict():
    data = HandData(Gesture.CLOSED_FIST, 0.3, 0.4, True)
    assert data.to_dict() == {"gesture": "CLOSED_FIST", "x": 0.3, "y": 0.4, "detected": True}
