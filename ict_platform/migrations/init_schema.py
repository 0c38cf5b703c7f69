"""Database schema initialization for purchase-order approval.

Contains the CREATE TABLE, ALTER TABLE and CREATE INDEX statements.
Default rules are seeded separately by RuleRepository.seed_defaults().

Called by database.init_db().
"""


def create_schema(conn, cursor):
    """Create approval tables and indexes.

    Args:
        conn: Database connection (for commit/rollback)
        cursor: Database cursor from get_cursor(conn)
    """
    # ============== Users & roles ==============
    cursor.execute('''
        CREATE TABLE IF NOT EXISTS roles (
            id SERIAL PRIMARY KEY,
            name TEXT NOT NULL UNIQUE,
            description TEXT,
            can_access_settings BOOLEAN DEFAULT FALSE,
            can_approve_po BOOLEAN DEFAULT FALSE,
            can_edit_inventory BOOLEAN DEFAULT FALSE,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')
    cursor.execute('''
        CREATE TABLE IF NOT EXISTS users (
            id SERIAL PRIMARY KEY,
            name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE,
            password_hash TEXT,
            role_id INTEGER REFERENCES roles(id),
            is_active BOOLEAN DEFAULT TRUE,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')
    cursor.execute('''
        INSERT INTO roles (name, description, can_access_settings, can_approve_po, can_edit_inventory)
        VALUES
            ('administrator', 'Full access', TRUE, TRUE, TRUE),
            ('ict_project_manager', 'Approves medium and large orders', FALSE, TRUE, FALSE),
            ('ict_inventory_manager', 'Manages stock, first approval level', FALSE, TRUE, TRUE)
        ON CONFLICT (name) DO NOTHING
    ''')

    # ============== Purchase orders ==============
    cursor.execute('''
        CREATE TABLE IF NOT EXISTS purchase_orders (
            id SERIAL PRIMARY KEY,
            po_number TEXT UNIQUE,
            supplier_id INTEGER,
            total_amount NUMERIC(15,2) NOT NULL DEFAULT 0,
            approval_status TEXT NOT NULL DEFAULT 'none',
            created_by INTEGER REFERENCES users(id),
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    # ============== Approval rules & chains ==============
    cursor.execute('''
        CREATE TABLE IF NOT EXISTS po_approval_rules (
            id SERIAL PRIMARY KEY,
            name TEXT NOT NULL,
            min_amount NUMERIC(15,2) NOT NULL DEFAULT 0,
            max_amount NUMERIC(15,2),
            levels JSONB NOT NULL DEFAULT '[]'::jsonb,
            auto_approve_below NUMERIC(15,2) NOT NULL DEFAULT 0,
            is_active BOOLEAN NOT NULL DEFAULT TRUE,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            CONSTRAINT chk_po_rule_amounts CHECK (
                min_amount >= 0 AND (max_amount IS NULL OR max_amount >= min_amount)
            ),
            CONSTRAINT chk_po_rule_levels CHECK (
                jsonb_array_length(levels) BETWEEN 1 AND 3
            )
        )
    ''')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_po_approval_rules_active ON po_approval_rules(is_active)')

    # Older purchase_orders tables predate approvals; add the column if missing
    cursor.execute('''
        DO $$
        BEGIN
            IF NOT EXISTS (SELECT 1 FROM information_schema.columns WHERE table_name = 'purchase_orders' AND column_name = 'approval_status') THEN
                ALTER TABLE purchase_orders ADD COLUMN approval_status TEXT NOT NULL DEFAULT 'none';
            END IF;
        END $$;
    ''')

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS po_approvals (
            id SERIAL PRIMARY KEY,
            request_id INTEGER NOT NULL REFERENCES purchase_orders(id) ON DELETE CASCADE,
            level INTEGER NOT NULL,
            approver_role TEXT,
            approver_user_id INTEGER,
            status TEXT NOT NULL DEFAULT 'pending',
            actor_id INTEGER,
            comments TEXT,
            decided_at TIMESTAMP,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            CONSTRAINT uq_po_approvals_level UNIQUE (request_id, level),
            CONSTRAINT chk_po_approval_status CHECK (status IN ('pending', 'approved', 'rejected')),
            CONSTRAINT chk_po_approval_level CHECK (level BETWEEN 1 AND 3)
        )
    ''')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_po_approvals_request ON po_approvals(request_id)')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_po_approvals_status ON po_approvals(status)')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_po_approvals_actor ON po_approvals(actor_id)')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_po_approvals_role ON po_approvals(approver_role)')
