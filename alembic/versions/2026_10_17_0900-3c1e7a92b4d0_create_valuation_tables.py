"""create bank account, crypto, roboadvisor and valuation snapshot tables

Revision ID: 3c1e7a92b4d0
Revises:
Create Date: 2026-10-17 09:00:00.000000+00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c1e7a92b4d0'
down_revision = None
branch_labels = None
depends_on = None


balance_type = sa.Enum('DEPOSIT', 'WITHDRAWAL', 'ADJUSTMENT', name='roboadvisorbalancetype')


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    # Owners
    op.create_table(
        'bank_accounts',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('currency_code', sa.String(length=3), nullable=False),
        sa.Column('tax_rate', sa.Numeric(precision=5, scale=4), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_bank_accounts')),
    )
    op.create_index(op.f('ix_bank_accounts_id'), 'bank_accounts', ['id'], unique=False)

    op.create_table(
        'crypto_exchanges',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('tax_rate', sa.Numeric(precision=5, scale=4), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_crypto_exchanges')),
    )
    op.create_index(op.f('ix_crypto_exchanges_id'), 'crypto_exchanges', ['id'], unique=False)
    op.create_index(op.f('ix_crypto_exchanges_name'), 'crypto_exchanges', ['name'], unique=False)

    op.create_table(
        'roboadvisors',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('currency_code', sa.String(length=3), nullable=False),
        sa.Column('tax_rate', sa.Numeric(precision=5, scale=4), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_roboadvisors')),
    )
    op.create_index(op.f('ix_roboadvisors_id'), 'roboadvisors', ['id'], unique=False)

    # Bank account history and rate periods
    op.create_table(
        'bank_account_balances',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('bank_account_id', sa.Uuid(), nullable=False),
        sa.Column('balance', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('currency_code', sa.String(length=3), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ['bank_account_id'], ['bank_accounts.id'],
            name=op.f('fk_bank_account_balances_bank_account_id_bank_accounts'),
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_bank_account_balances')),
    )
    op.create_index(op.f('ix_bank_account_balances_id'), 'bank_account_balances', ['id'], unique=False)
    op.create_index(
        op.f('ix_bank_account_balances_bank_account_id'),
        'bank_account_balances', ['bank_account_id'], unique=False,
    )
    op.create_index(
        op.f('ix_bank_account_balances_created_at'),
        'bank_account_balances', ['created_at'], unique=False,
    )

    op.create_table(
        'bank_account_interest_rates',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('bank_account_id', sa.Uuid(), nullable=False),
        sa.Column('interest_rate', sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            'end_date IS NULL OR end_date >= start_date',
            name=op.f('ck_bank_account_interest_rates_end_date_after_start'),
        ),
        sa.ForeignKeyConstraint(
            ['bank_account_id'], ['bank_accounts.id'],
            name=op.f('fk_bank_account_interest_rates_bank_account_id_bank_accounts'),
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_bank_account_interest_rates')),
    )
    op.create_index(
        op.f('ix_bank_account_interest_rates_id'),
        'bank_account_interest_rates', ['id'], unique=False,
    )
    op.create_index(
        op.f('ix_bank_account_interest_rates_bank_account_id'),
        'bank_account_interest_rates', ['bank_account_id'], unique=False,
    )
    op.create_index(
        'ix_interest_rates_account_start',
        'bank_account_interest_rates', ['bank_account_id', 'start_date'], unique=False,
    )

    # Crypto balances
    op.create_table(
        'crypto_exchange_balances',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('crypto_exchange_id', sa.Uuid(), nullable=False),
        sa.Column('symbol_code', sa.String(length=10), nullable=False),
        sa.Column('balance', sa.Numeric(precision=20, scale=8), nullable=False),
        sa.Column('invested_amount', sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column('invested_currency_code', sa.String(length=3), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ['crypto_exchange_id'], ['crypto_exchanges.id'],
            name=op.f('fk_crypto_exchange_balances_crypto_exchange_id_crypto_exchanges'),
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_crypto_exchange_balances')),
    )
    op.create_index(
        op.f('ix_crypto_exchange_balances_id'), 'crypto_exchange_balances', ['id'], unique=False
    )
    op.create_index(
        op.f('ix_crypto_exchange_balances_crypto_exchange_id'),
        'crypto_exchange_balances', ['crypto_exchange_id'], unique=False,
    )
    op.create_index(
        'ix_crypto_balances_exchange_symbol_created',
        'crypto_exchange_balances', ['crypto_exchange_id', 'symbol_code', 'created_at'],
        unique=False,
    )

    # Roboadvisor baskets and cash movements
    op.create_table(
        'roboadvisor_funds',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('roboadvisor_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('isin', sa.String(length=12), nullable=False),
        sa.Column('fund_currency_code', sa.String(length=3), nullable=False),
        sa.Column('weight', sa.Numeric(precision=8, scale=6), nullable=False),
        sa.Column('share_count', sa.Numeric(precision=20, scale=8), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ['roboadvisor_id'], ['roboadvisors.id'],
            name=op.f('fk_roboadvisor_funds_roboadvisor_id_roboadvisors'),
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_roboadvisor_funds')),
    )
    op.create_index(op.f('ix_roboadvisor_funds_id'), 'roboadvisor_funds', ['id'], unique=False)
    op.create_index(
        op.f('ix_roboadvisor_funds_roboadvisor_id'),
        'roboadvisor_funds', ['roboadvisor_id'], unique=False,
    )

    op.create_table(
        'roboadvisor_balances',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('roboadvisor_id', sa.Uuid(), nullable=False),
        sa.Column('type', balance_type, nullable=False),
        sa.Column('amount', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('currency_code', sa.String(length=3), nullable=False),
        sa.Column('movement_date', sa.Date(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ['roboadvisor_id'], ['roboadvisors.id'],
            name=op.f('fk_roboadvisor_balances_roboadvisor_id_roboadvisors'),
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_roboadvisor_balances')),
    )
    op.create_index(
        op.f('ix_roboadvisor_balances_id'), 'roboadvisor_balances', ['id'], unique=False
    )
    op.create_index(
        op.f('ix_roboadvisor_balances_roboadvisor_id'),
        'roboadvisor_balances', ['roboadvisor_id'], unique=False,
    )

    # Valuation snapshots
    op.create_table(
        'bank_account_calculations',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('bank_account_id', sa.Uuid(), nullable=False),
        sa.Column('monthly_profit', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('annual_profit', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('monthly_profit_after_tax', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('annual_profit_after_tax', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('currency_code', sa.String(length=3), nullable=False),
        sa.Column('calculated_at', sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ['bank_account_id'], ['bank_accounts.id'],
            name=op.f('fk_bank_account_calculations_bank_account_id_bank_accounts'),
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_bank_account_calculations')),
        sa.UniqueConstraint(
            'bank_account_id', name=op.f('uq_bank_account_calculations_bank_account_id')
        ),
    )
    op.create_index(
        op.f('ix_bank_account_calculations_id'), 'bank_account_calculations', ['id'], unique=False
    )

    op.create_table(
        'roboadvisor_fund_calculations',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('roboadvisor_id', sa.Uuid(), nullable=False),
        sa.Column('current_value_after_tax', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('currency_code', sa.String(length=3), nullable=False),
        sa.Column('calculated_at', sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ['roboadvisor_id'], ['roboadvisors.id'],
            name=op.f('fk_roboadvisor_fund_calculations_roboadvisor_id_roboadvisors'),
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_roboadvisor_fund_calculations')),
        sa.UniqueConstraint(
            'roboadvisor_id', name=op.f('uq_roboadvisor_fund_calculations_roboadvisor_id')
        ),
    )
    op.create_index(
        op.f('ix_roboadvisor_fund_calculations_id'),
        'roboadvisor_fund_calculations', ['id'], unique=False,
    )

    op.create_table(
        'crypto_exchange_calculations',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('crypto_exchange_id', sa.Uuid(), nullable=False),
        sa.Column('symbol_code', sa.String(length=10), nullable=False),
        sa.Column('current_value_after_tax', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('currency_code', sa.String(length=3), nullable=False),
        sa.Column('calculated_at', sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ['crypto_exchange_id'], ['crypto_exchanges.id'],
            name=op.f('fk_crypto_exchange_calculations_crypto_exchange_id_crypto_exchanges'),
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_crypto_exchange_calculations')),
    )
    op.create_index(
        op.f('ix_crypto_exchange_calculations_id'),
        'crypto_exchange_calculations', ['id'], unique=False,
    )
    op.create_index(
        op.f('ix_crypto_exchange_calculations_crypto_exchange_id'),
        'crypto_exchange_calculations', ['crypto_exchange_id'], unique=False,
    )
    op.create_index(
        'ix_crypto_calcs_exchange_symbol_calculated',
        'crypto_exchange_calculations', ['crypto_exchange_id', 'symbol_code', 'calculated_at'],
        unique=False,
    )


def downgrade() -> None:
    op.drop_table('crypto_exchange_calculations')
    op.drop_table('roboadvisor_fund_calculations')
    op.drop_table('bank_account_calculations')
    op.drop_table('roboadvisor_balances')
    op.drop_table('roboadvisor_funds')
    op.drop_table('crypto_exchange_balances')
    op.drop_table('bank_account_interest_rates')
    op.drop_table('bank_account_balances')
    op.drop_table('roboadvisors')
    op.drop_table('crypto_exchanges')
    op.drop_table('bank_accounts')
    balance_type.drop(op.get_bind(), checkfirst=True)
