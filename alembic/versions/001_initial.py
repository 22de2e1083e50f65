"""Create initial tables

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Create users table (customers and admins)
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('full_name', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('is_admin', sa.Integer(), nullable=True, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)

    # Create installers table
    op.create_table(
        'installers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('business_name', sa.String(), nullable=False),
        sa.Column('contact_name', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_installers_email'), 'installers', ['email'], unique=True)
    op.create_index(op.f('ix_installers_id'), 'installers', ['id'], unique=False)

    # Create bookings table
    op.create_table(
        'bookings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('installer_id', sa.Integer(), nullable=True),
        sa.Column('contact_name', sa.String(), nullable=False),
        sa.Column('contact_email', sa.String(), nullable=False),
        sa.Column('contact_phone', sa.String(), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('tv_count', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('status', sa.String(), nullable=True, server_default='pending'),
        sa.Column('scheduled_date', sa.DateTime(), nullable=True),
        sa.Column('scheduled_time_slot', sa.String(), nullable=True),
        sa.Column('photos_submitted_at', sa.DateTime(), nullable=True),
        sa.Column('photo_quality_stars', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['customer_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['installer_id'], ['installers.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_bookings_id'), 'bookings', ['id'], unique=False)
    op.create_index(op.f('ix_bookings_customer_id'), 'bookings', ['customer_id'], unique=False)
    op.create_index(op.f('ix_bookings_installer_id'), 'bookings', ['installer_id'], unique=False)
    op.create_index(op.f('ix_bookings_status'), 'bookings', ['status'], unique=False)

    # Create schedule_negotiations table
    op.create_table(
        'schedule_negotiations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('booking_id', sa.Integer(), nullable=False),
        sa.Column('installer_id', sa.Integer(), nullable=False),
        sa.Column('proposed_by', sa.String(), nullable=False),
        sa.Column('proposed_date', sa.DateTime(), nullable=False),
        sa.Column('proposed_time_slot', sa.String(), nullable=False),
        sa.Column('proposed_start_time', sa.String(), nullable=True),
        sa.Column('proposed_end_time', sa.String(), nullable=True),
        sa.Column('status', sa.String(), nullable=True, server_default='pending'),
        sa.Column('proposal_message', sa.Text(), nullable=True),
        sa.Column('response_message', sa.Text(), nullable=True),
        sa.Column('proposed_at', sa.DateTime(), nullable=True),
        sa.Column('responded_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['installer_id'], ['installers.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_schedule_negotiations_id'), 'schedule_negotiations', ['id'], unique=False)
    op.create_index(op.f('ix_schedule_negotiations_booking_id'), 'schedule_negotiations', ['booking_id'], unique=False)
    op.create_index(op.f('ix_schedule_negotiations_installer_id'), 'schedule_negotiations', ['installer_id'], unique=False)
    op.create_index(op.f('ix_schedule_negotiations_status'), 'schedule_negotiations', ['status'], unique=False)
    op.create_index(op.f('ix_schedule_negotiations_proposed_at'), 'schedule_negotiations', ['proposed_at'], unique=False)

    # Create installer_photo_progress table
    op.create_table(
        'installer_photo_progress',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('booking_id', sa.Integer(), nullable=False),
        sa.Column('installer_id', sa.Integer(), nullable=False),
        sa.Column('tv_index', sa.Integer(), nullable=False),
        sa.Column('before_photo_url', sa.Text(), nullable=True),
        sa.Column('after_photo_url', sa.Text(), nullable=True),
        sa.Column('before_photo_source', sa.String(), nullable=True),
        sa.Column('after_photo_source', sa.String(), nullable=True),
        sa.Column('is_completed', sa.Boolean(), nullable=True, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['installer_id'], ['installers.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('booking_id', 'tv_index', name='uq_photo_progress_booking_tv')
    )
    op.create_index(op.f('ix_installer_photo_progress_id'), 'installer_photo_progress', ['id'], unique=False)
    op.create_index(op.f('ix_installer_photo_progress_booking_id'), 'installer_photo_progress', ['booking_id'], unique=False)

    # Create support_tickets table
    op.create_table(
        'support_tickets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('subject', sa.String(), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('category', sa.String(), nullable=True, server_default='general'),
        sa.Column('priority', sa.String(), nullable=True, server_default='medium'),
        sa.Column('status', sa.String(), nullable=True, server_default='open'),
        sa.Column('assigned_to', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.Column('closed_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_support_tickets_id'), 'support_tickets', ['id'], unique=False)
    op.create_index(op.f('ix_support_tickets_user_id'), 'support_tickets', ['user_id'], unique=False)
    op.create_index(op.f('ix_support_tickets_status'), 'support_tickets', ['status'], unique=False)
    op.create_index(op.f('ix_support_tickets_created_at'), 'support_tickets', ['created_at'], unique=False)

    # Create ticket_messages table
    op.create_table(
        'ticket_messages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('ticket_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('is_admin_reply', sa.Boolean(), nullable=True, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['ticket_id'], ['support_tickets.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_ticket_messages_id'), 'ticket_messages', ['id'], unique=False)
    op.create_index(op.f('ix_ticket_messages_ticket_id'), 'ticket_messages', ['ticket_id'], unique=False)


def downgrade():
    op.drop_index(op.f('ix_ticket_messages_ticket_id'), table_name='ticket_messages')
    op.drop_index(op.f('ix_ticket_messages_id'), table_name='ticket_messages')
    op.drop_table('ticket_messages')

    op.drop_index(op.f('ix_support_tickets_created_at'), table_name='support_tickets')
    op.drop_index(op.f('ix_support_tickets_status'), table_name='support_tickets')
    op.drop_index(op.f('ix_support_tickets_user_id'), table_name='support_tickets')
    op.drop_index(op.f('ix_support_tickets_id'), table_name='support_tickets')
    op.drop_table('support_tickets')

    op.drop_index(op.f('ix_installer_photo_progress_booking_id'), table_name='installer_photo_progress')
    op.drop_index(op.f('ix_installer_photo_progress_id'), table_name='installer_photo_progress')
    op.drop_table('installer_photo_progress')

    op.drop_index(op.f('ix_schedule_negotiations_proposed_at'), table_name='schedule_negotiations')
    op.drop_index(op.f('ix_schedule_negotiations_status'), table_name='schedule_negotiations')
    op.drop_index(op.f('ix_schedule_negotiations_installer_id'), table_name='schedule_negotiations')
    op.drop_index(op.f('ix_schedule_negotiations_booking_id'), table_name='schedule_negotiations')
    op.drop_index(op.f('ix_schedule_negotiations_id'), table_name='schedule_negotiations')
    op.drop_table('schedule_negotiations')

    op.drop_index(op.f('ix_bookings_status'), table_name='bookings')
    op.drop_index(op.f('ix_bookings_installer_id'), table_name='bookings')
    op.drop_index(op.f('ix_bookings_customer_id'), table_name='bookings')
    op.drop_index(op.f('ix_bookings_id'), table_name='bookings')
    op.drop_table('bookings')

    op.drop_index(op.f('ix_installers_id'), table_name='installers')
    op.drop_index(op.f('ix_installers_email'), table_name='installers')
    op.drop_table('installers')

    op.drop_index(op.f('ix_users_id'), table_name='users')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
