"""Tests for the conversion screen RewardBoard."""

import pytest

from models import ConversionScreen, FlowEntry, GateType, RewardGate, ScreenMethod
from macrogame.rewards import RewardBoard
from macrogame.scoring import ScoringLedger


@pytest.fixture
def screen():
    return ConversionScreen(
        id='rewards',
        headline='Claim your reward',
        methods=[
            ScreenMethod(instance_id='open', method_id='link', name='Open link'),
            ScreenMethod(instance_id='threshold', method_id='coupon', name='10% off',
                         gate=RewardGate(type=GateType.POINT_THRESHOLD)),
            ScreenMethod(instance_id='purchase', method_id='coupon', name='25% off',
                         gate=RewardGate(type=GateType.ON_POINTS)),
            ScreenMethod(instance_id='follow-up', method_id='link', name='Bonus',
                         gate=RewardGate(type=GateType.ON_SUCCESS, method_instance_id='open')),
            ScreenMethod(instance_id='orphan', method_id='link', name='Orphan',
                         gate=RewardGate(type=GateType.ON_SUCCESS)),
            ScreenMethod(instance_id='free', method_id='coupon', name='Free',
                         gate=RewardGate(type=GateType.POINT_THRESHOLD)),
        ],
    )


@pytest.fixture
def ledger():
    flow = [FlowEntry(id='avoid', name='Avoid', point_rules={'win': 100})]
    return ScoringLedger(flow, lambda: 0)


@pytest.fixture
def board(screen, ledger):
    return RewardBoard(screen, ledger, {'threshold': 100, 'purchase': 150})


def locked(board):
    return {status.instance_id: status.locked for status in board.statuses()}


class TestRewardBoard:
    def test_initial_lock_state(self, board):
        assert locked(board) == {
            'open': False,
            'threshold': True,
            'purchase': True,
            'follow-up': True,
            'orphan': True,
            'free': True,
        }

    def test_threshold_unlocks_with_score(self, board, ledger):
        ledger.report_event('win')

        status = board.status('threshold')
        assert status.locked is False
        assert status.can_afford is True

    def test_zero_cost_gate_stays_locked(self, board, ledger):
        for _ in range(5):
            ledger.report_event('win')
        assert board.status('free').locked is True

    def test_on_success_unlocks_after_completion(self, board):
        board.complete('open')
        assert board.status('follow-up').locked is False
        assert board.status('orphan').locked is True

    def test_purchase_redeems_points(self, board, ledger):
        ledger.report_event('win')
        ledger.report_event('win')

        assert board.purchase('purchase') is True

        assert ledger.score == 50
        assert board.status('purchase').locked is False
        assert board.status('purchase').completed is True

    def test_purchase_twice_charges_once(self, board, ledger):
        ledger.report_event('win')
        ledger.report_event('win')

        board.purchase('purchase')
        assert board.purchase('purchase') is True
        assert ledger.score == 50

    def test_purchase_unaffordable(self, board, ledger):
        ledger.report_event('win')

        assert board.purchase('purchase') is False
        assert ledger.score == 100
        assert board.status('purchase').can_afford is False

    def test_purchase_requires_points_gate(self, board, ledger):
        ledger.report_event('win')
        assert board.purchase('threshold') is False
        assert board.purchase('missing') is False
        assert ledger.score == 100

    def test_complete_unknown_method_is_ignored(self, board):
        board.complete('missing')
        assert board.completed == set()

    def test_free_purchase_costs_nothing(self, screen, ledger):
        board = RewardBoard(screen, ledger, {'threshold': 100})

        status = board.status('purchase')
        assert status.locked is True
        assert status.can_afford is True

        assert board.purchase('purchase') is True
        assert ledger.score == 0
        assert ledger.entries == ()
        assert board.status('purchase').locked is False


class TestActivate:
    def test_unlocked_method_is_completed(self, board):
        assert board.activate('open') is True

        assert board.status('open').completed is True
        assert board.status('follow-up').locked is False

    def test_points_method_is_purchased(self, board, ledger):
        ledger.report_event('win')
        ledger.report_event('win')

        assert board.activate('purchase') is True

        assert ledger.score == 50
        assert board.status('purchase').completed is True

    def test_unaffordable_purchase(self, board, ledger):
        assert board.activate('purchase') is False
        assert ledger.score == 0

    def test_locked_method_is_refused(self, board):
        assert board.activate('follow-up') is False
        assert board.activate('threshold') is False
        assert board.completed == set()

    def test_unknown_method(self, board):
        assert board.activate('missing') is False

    def test_reset_relocks_everything(self, board, ledger):
        ledger.report_event('win')
        ledger.report_event('win')
        board.activate('open')
        board.activate('purchase')

        board.reset()

        assert board.completed == set()
        assert board.status('follow-up').locked is True
        assert board.status('purchase').locked is True
