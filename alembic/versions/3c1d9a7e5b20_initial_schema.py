"""initial schema: searches, runs, jobs, companies, contacts, outreach_messages

Revision ID: 3c1d9a7e5b20
Revises:
Create Date: 2026-10-19 09:12:40.118302

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1d9a7e5b20'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'searches',
        sa.Column('search_id', sa.String(length=36), primary_key=True),
        sa.Column('query', sa.Text(), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('params', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_table(
        'runs',
        sa.Column('run_id', sa.String(length=36), primary_key=True),
        sa.Column('query', sa.Text(), nullable=False),
        sa.Column('params', sa.JSON(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('stats', sa.JSON(), nullable=False),
        sa.Column('stop_reason', sa.Text(), nullable=True),
        sa.Column('search_id', sa.String(length=36),
                  sa.ForeignKey('searches.search_id', ondelete='SET NULL'), nullable=True),
        sa.Column('view_token', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_runs_status', 'runs', ['status'])
    op.create_index('ix_runs_search_id', 'runs', ['search_id'])

    op.create_table(
        'jobs',
        sa.Column('job_id', sa.String(length=64), primary_key=True),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('company_name', sa.Text(), nullable=False),
        sa.Column('company_id', sa.String(length=64), nullable=True),
        sa.Column('location', sa.Text(), nullable=True),
        sa.Column('salary', sa.Text(), nullable=True),
        sa.Column('posted_at', sa.Date(), nullable=True),
        sa.Column('source', sa.String(length=255), nullable=True),
        sa.Column('source_type', sa.String(length=255), nullable=True),
        sa.Column('link', sa.Text(), nullable=True),
        sa.Column('schedule_type', sa.String(length=64), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=True),
        sa.Column('relevance_score', sa.Float(), nullable=True),
        sa.Column('run_id', sa.String(length=36), nullable=True),
        sa.Column('scraped_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_jobs_company_id', 'jobs', ['company_id'])
    op.create_index('ix_jobs_run_id', 'jobs', ['run_id'])
    op.create_index('idx_jobs_run_posted', 'jobs', ['run_id', 'posted_at'])

    op.create_table(
        'companies',
        sa.Column('company_id', sa.String(length=64), primary_key=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('domain', sa.String(length=255), nullable=True),
        sa.Column('industry', sa.String(length=255), nullable=True),
        sa.Column('linkedin', sa.Text(), nullable=True),
        sa.Column('size', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_table(
        'contacts',
        sa.Column('contact_id', sa.String(length=64), primary_key=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('title', sa.Text(), nullable=True),
        sa.Column('email', sa.String(length=320), nullable=True),
        sa.Column('email_status', sa.String(length=16), nullable=True),
        sa.Column('linkedin', sa.Text(), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('confidence', sa.Float(), nullable=True),
        sa.Column('company_id', sa.String(length=64), nullable=True),
        sa.Column('job_id', sa.String(length=64), nullable=True),
        sa.Column('source', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_contacts_company_id', 'contacts', ['company_id'])
    op.create_index('ix_contacts_job_id', 'contacts', ['job_id'])

    op.create_table(
        'outreach_messages',
        sa.Column('message_id', sa.String(length=36), primary_key=True),
        sa.Column('contact_id', sa.String(length=64), nullable=True),
        sa.Column('job_id', sa.String(length=64), nullable=True),
        sa.Column('company_id', sa.String(length=64), nullable=True),
        sa.Column('subject', sa.Text(), nullable=True),
        sa.Column('body', sa.Text(), nullable=True),
        sa.Column('tone', sa.String(length=64), nullable=True),
        sa.Column('channel', sa.String(length=32), nullable=False, server_default='email'),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_outreach_contact_job', 'outreach_messages', ['contact_id', 'job_id', 'updated_at'])


def downgrade() -> None:
    op.drop_index('idx_outreach_contact_job', table_name='outreach_messages')
    op.drop_table('outreach_messages')
    op.drop_index('ix_contacts_job_id', table_name='contacts')
    op.drop_index('ix_contacts_company_id', table_name='contacts')
    op.drop_table('contacts')
    op.drop_table('companies')
    op.drop_index('idx_jobs_run_posted', table_name='jobs')
    op.drop_index('ix_jobs_run_id', table_name='jobs')
    op.drop_index('ix_jobs_company_id', table_name='jobs')
    op.drop_table('jobs')
    op.drop_index('ix_runs_search_id', table_name='runs')
    op.drop_index('ix_runs_status', table_name='runs')
    op.drop_table('runs')
    op.drop_table('searches')
