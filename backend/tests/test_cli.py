# Overview: Coverage for the flask CLI groups (system, stock, ledger).

from sqlalchemy import update

from shopledger.models import LedgerAccount, Location, Product


class TestSystemInit:
    def test_init_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()

        first = runner.invoke(args=["system", "init"])
        assert first.exit_code == 0
        assert "PASS Created locations: SHOP, WAREHOUSE, SERVICE" in first.output
        assert "PASS Created ledger accounts: CASH, BANK, BKASH, NAGAD" in first.output

        second = runner.invoke(args=["system", "init"])
        assert second.exit_code == 0
        assert "PASS Locations already present" in second.output
        assert "PASS Ledger accounts already present" in second.output

        assert db_session.query(Location).count() == 3
        assert db_session.query(LedgerAccount).count() == 4


class TestStockCommands:
    def test_check_passes_then_detects_drift(self, app, db_session, make_product):
        product = make_product(stock=3)
        runner = app.test_cli_runner()

        ok = runner.invoke(args=["stock", "check"])
        assert ok.exit_code == 0
        assert "PASS" in ok.output

        db_session.execute(update(Product).where(Product.id == product.id).values(stock=9))
        db_session.commit()

        bad = runner.invoke(args=["stock", "check"])
        assert bad.exit_code == 1
        assert f"FAIL product {product.id}" in bad.output
        assert "stock=9 locations=3" in bad.output

    def test_show(self, app, make_product):
        product = make_product(title="Iron", stock=2)
        result = app.test_cli_runner().invoke(args=["stock", "show", str(product.id)])
        assert result.exit_code == 0
        assert "Iron" in result.output
        assert "SHOP" in result.output

    def test_show_unknown_product(self, app, reference_data):
        result = app.test_cli_runner().invoke(args=["stock", "show", "99999"])
        assert result.exit_code != 0


class TestLedgerCommands:
    def test_balances(self, app, cash_account):
        result = app.test_cli_runner().invoke(args=["ledger", "balances"])
        assert result.exit_code == 0
        assert "Cash" in result.output
        assert "BKASH" in result.output
