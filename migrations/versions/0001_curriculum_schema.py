"""curriculum schema

Revision ID: 0001
Revises: 
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None

school_type = sa.Enum('NURSERY', 'PRIMARY', 'SECONDARY', 'TERTIARY', name='schooltype')
period_type = sa.Enum('LESSON', 'BREAK', 'ASSEMBLY', 'LUNCH', name='periodtype')
curriculum_status = sa.Enum('DRAFT', 'SUBMITTED', 'APPROVED', 'REJECTED', 'ACTIVE', 'COMPLETED',
                            name='curriculumstatus')
item_status = sa.Enum('PENDING', 'IN_PROGRESS', 'COMPLETED', 'SKIPPED', name='itemstatus')


def _id():
    return sa.Column('id', sa.String(36), primary_key=True)


def upgrade():
    bind = op.get_bind()
    if bind.dialect.name != "sqlite":
        for e in (school_type, period_type, curriculum_status, item_status):
            e.create(bind, checkfirst=True)

    op.create_table('school',
        _id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('subdomain', sa.String(100), nullable=True),
        sa.Column('school_type', school_type, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index('ix_school_subdomain', 'school', ['subdomain'], unique=True)

    op.create_table('teacher',
        _id(),
        sa.Column('school_id', sa.String(36), sa.ForeignKey('school.id', ondelete='CASCADE'), nullable=False),
        sa.Column('teacher_code', sa.String(50), nullable=True, unique=True),
        sa.Column('first_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=True),
    )
    op.create_index('ix_teacher_school_id', 'teacher', ['school_id'])

    op.create_table('users',
        _id(),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(32), nullable=False),
        sa.Column('is_active_flag', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('school_id', sa.String(36), sa.ForeignKey('school.id', ondelete='SET NULL'), nullable=True),
        sa.Column('teacher_id', sa.String(36), sa.ForeignKey('teacher.id', ondelete='SET NULL'), nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table('academic_session',
        _id(),
        sa.Column('school_id', sa.String(36), sa.ForeignKey('school.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
    )
    op.create_index('ix_academic_session_school_id', 'academic_session', ['school_id'])

    op.create_table('term',
        _id(),
        sa.Column('academic_session_id', sa.String(36),
                  sa.ForeignKey('academic_session.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('number', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
    )
    op.create_index('ix_term_academic_session_id', 'term', ['academic_session_id'])

    op.create_table('class_level',
        _id(),
        sa.Column('school_id', sa.String(36), sa.ForeignKey('school.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index('ix_class_level_school_id', 'class_level', ['school_id'])
    op.create_index('ix_class_level_school_name_type', 'class_level', ['school_id', 'name', 'type'])

    op.create_table('class_arm',
        _id(),
        sa.Column('class_level_id', sa.String(36), sa.ForeignKey('class_level.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index('ix_class_arm_class_level_id', 'class_arm', ['class_level_id'])

    op.create_table('school_class',
        _id(),
        sa.Column('school_id', sa.String(36), sa.ForeignKey('school.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('code', sa.String(50), nullable=True),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('class_level', sa.String(100), nullable=True),
        sa.Column('academic_year', sa.String(20), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index('ix_school_class_school_id', 'school_class', ['school_id'])

    op.create_table('subject',
        _id(),
        sa.Column('school_id', sa.String(36), sa.ForeignKey('school.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('code', sa.String(20), nullable=True),
        sa.Column('school_type', sa.String(20), nullable=True),
        sa.UniqueConstraint('school_id', 'name', 'school_type', name='uq_subject_school_name_type'),
    )
    op.create_index('ix_subject_school_id', 'subject', ['school_id'])

    op.create_table('timetable_period',
        _id(),
        sa.Column('term_id', sa.String(36), sa.ForeignKey('term.id', ondelete='CASCADE'), nullable=False),
        sa.Column('day_of_week', sa.String(10), nullable=False),
        sa.Column('start_time', sa.String(5), nullable=False),
        sa.Column('end_time', sa.String(5), nullable=False),
        sa.Column('type', period_type, nullable=False),
        sa.Column('subject_id', sa.String(36), sa.ForeignKey('subject.id', ondelete='SET NULL'), nullable=True),
        sa.Column('teacher_id', sa.String(36), sa.ForeignKey('teacher.id', ondelete='SET NULL'), nullable=True),
        sa.Column('class_arm_id', sa.String(36), nullable=True),
        sa.Column('class_id', sa.String(36), nullable=True),
    )
    op.create_index('ix_period_term_arm', 'timetable_period', ['term_id', 'class_arm_id'])
    op.create_index('ix_period_term_class', 'timetable_period', ['term_id', 'class_id'])

    # ---------- справочник ----------
    op.create_table('reference_subject',
        _id(),
        sa.Column('code', sa.String(20), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('category', sa.String(20), nullable=True),
        sa.Column('school_types', sa.JSON(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index('ix_reference_subject_code', 'reference_subject', ['code'], unique=True)

    op.create_table('reference_curriculum',
        _id(),
        sa.Column('subject_id', sa.String(36),
                  sa.ForeignKey('reference_subject.id', ondelete='CASCADE'), nullable=False),
        sa.Column('class_level', sa.String(20), nullable=False),
        sa.Column('term', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.UniqueConstraint('subject_id', 'class_level', 'term', name='uq_reference_curriculum_tuple'),
    )

    op.create_table('reference_week',
        _id(),
        sa.Column('curriculum_id', sa.String(36),
                  sa.ForeignKey('reference_curriculum.id', ondelete='CASCADE'), nullable=False),
        sa.Column('week_number', sa.Integer(), nullable=False),
        sa.Column('topic', sa.String(500), nullable=False),
        sa.Column('sub_topics', sa.JSON(), nullable=False),
        sa.Column('objectives', sa.JSON(), nullable=False),
        sa.Column('activities', sa.JSON(), nullable=False),
        sa.Column('resources', sa.JSON(), nullable=False),
        sa.Column('assessment', sa.Text(), nullable=True),
        sa.Column('duration', sa.String(100), nullable=True),
        sa.UniqueConstraint('curriculum_id', 'week_number', name='uq_reference_week_number'),
    )

    # ---------- учебные планы школы ----------
    op.create_table('curriculum',
        _id(),
        sa.Column('school_id', sa.String(36), sa.ForeignKey('school.id', ondelete='CASCADE'), nullable=False),
        sa.Column('class_level_id', sa.String(36), sa.ForeignKey('class_level.id', ondelete='CASCADE'), nullable=True),
        sa.Column('class_id', sa.String(36), sa.ForeignKey('school_class.id', ondelete='CASCADE'), nullable=True),
        sa.Column('subject_id', sa.String(36), sa.ForeignKey('subject.id', ondelete='SET NULL'), nullable=True),
        sa.Column('subject_name', sa.String(255), nullable=True),
        sa.Column('teacher_id', sa.String(36), sa.ForeignKey('teacher.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('academic_year', sa.String(20), nullable=False),
        sa.Column('term_id', sa.String(36), sa.ForeignKey('term.id', ondelete='SET NULL'), nullable=True),
        sa.Column('reference_curriculum_id', sa.String(36),
                  sa.ForeignKey('reference_curriculum.id', ondelete='SET NULL'), nullable=True),
        sa.Column('is_template_based', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('customizations', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', curriculum_status, nullable=False),
        sa.Column('submitted_at', sa.DateTime(), nullable=True),
        sa.Column('approved_by', sa.String(36), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('rejected_at', sa.DateTime(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('(class_level_id IS NULL) <> (class_id IS NULL)', name='ck_curriculum_single_scope'),
    )
    op.create_index('ix_curriculum_school_id', 'curriculum', ['school_id'])
    op.create_index('ix_curriculum_teacher_id', 'curriculum', ['teacher_id'])
    op.create_index(
        'uq_curriculum_active_level', 'curriculum',
        ['school_id', 'class_level_id', 'subject_id', 'term_id'], unique=True,
        sqlite_where=sa.text('is_active = 1 AND class_level_id IS NOT NULL'),
        postgresql_where=sa.text('is_active AND class_level_id IS NOT NULL'),
    )
    op.create_index(
        'uq_curriculum_active_class', 'curriculum',
        ['school_id', 'class_id', 'subject_id', 'term_id'], unique=True,
        sqlite_where=sa.text('is_active = 1 AND class_id IS NOT NULL'),
        postgresql_where=sa.text('is_active AND class_id IS NOT NULL'),
    )

    op.create_table('curriculum_item',
        _id(),
        sa.Column('curriculum_id', sa.String(36), sa.ForeignKey('curriculum.id', ondelete='CASCADE'), nullable=False),
        sa.Column('week_number', sa.Integer(), nullable=False),
        sa.Column('topic', sa.String(500), nullable=False),
        sa.Column('sub_topics', sa.JSON(), nullable=False),
        sa.Column('objectives', sa.JSON(), nullable=False),
        sa.Column('activities', sa.JSON(), nullable=False),
        sa.Column('resources', sa.JSON(), nullable=False),
        sa.Column('assessment', sa.Text(), nullable=True),
        sa.Column('order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_customized', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('original_topic', sa.String(500), nullable=True),
        sa.Column('status', item_status, nullable=False),
        sa.Column('taught_at', sa.DateTime(), nullable=True),
        sa.Column('teacher_notes', sa.Text(), nullable=True),
        sa.Column('completed_by', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_curriculum_item_curriculum_id', 'curriculum_item', ['curriculum_id'])
    op.create_index('ix_curriculum_item_week', 'curriculum_item', ['curriculum_id', 'week_number'])


def downgrade():
    for name in (
        'curriculum_item', 'curriculum', 'reference_week', 'reference_curriculum', 'reference_subject',
        'timetable_period', 'subject', 'school_class', 'class_arm', 'class_level', 'term',
        'academic_session', 'users', 'teacher', 'school',
    ):
        op.drop_table(name)
    bind = op.get_bind()
    if bind.dialect.name != "sqlite":
        for e in (item_status, curriculum_status, period_type, school_type):
            e.drop(bind, checkfirst=True)
