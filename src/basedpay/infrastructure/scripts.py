"""Central registry for Redis Lua scripts used across the application.

Every state-changing operation of the reward engine, the ledger and the
merchant registry runs as one script, so Redis applies it as a single
indivisible step. Scripts are registered at application startup for EVALSHA.

Return Code Conventions:
    Scripts return ``{code, detail}`` where ``detail`` is always a string.

    - 0: Conflict - the key being created already exists (merchant already
         registered, balance already seeded). Nothing was written.

    - 1: Success - all writes applied. ``detail`` carries the new counter or
         balance relevant to the caller.

    - 2: Precondition failed - the account has no unclaimed box. Nothing was
         written.

    - 3: Funds exhausted - the paying balance is below the requested amount.
         ``detail`` carries the current balance. Nothing was written.

Amounts are integer USDC units and are passed as strings so that
HINCRBY/INCRBY operate on exact 64-bit integers.
"""

REWARD_SCRIPTS = {
    "grant_box": """
        local account_key = KEYS[1]
        local event_key = KEYS[2]
        local events_index = KEYS[3]
        local event_json = ARGV[1]
        local event_score = ARGV[2]
        local event_id = ARGV[3]

        local unclaimed = redis.call('HINCRBY', account_key, 'unclaimed_boxes', 1)
        redis.call('SET', event_key, event_json)
        redis.call('ZADD', events_index, event_score, event_id)
        return {1, tostring(unclaimed)}
    """,
    "grant_box_batch": """
        -- KEYS: events index, then (account key, event key) per grant
        -- ARGV: (event json, score, event id) per grant
        local events_index = KEYS[1]
        local counts = {}

        for i = 2, #KEYS, 2 do
            local base = (i - 2) / 2 * 3
            local unclaimed = redis.call('HINCRBY', KEYS[i], 'unclaimed_boxes', 1)
            redis.call('SET', KEYS[i + 1], ARGV[base + 1])
            redis.call('ZADD', events_index, ARGV[base + 2], ARGV[base + 3])
            counts[#counts + 1] = tostring(unclaimed)
        end
        return {1, table.concat(counts, ',')}
    """,
    "claim_box": """
        local account_key = KEYS[1]
        local custody_key = KEYS[2]
        local user_balance_key = KEYS[3]
        local stats_key = KEYS[4]
        local event_key = KEYS[5]
        local events_index = KEYS[6]
        local prize = tonumber(ARGV[1])

        local unclaimed = tonumber(redis.call('HGET', account_key, 'unclaimed_boxes') or '0')
        if unclaimed <= 0 then
            return {2, ''}
        end

        local custody = tonumber(redis.call('GET', custody_key) or '0')
        if custody < prize then
            return {3, tostring(custody)}
        end

        -- Counters first, then the payout
        redis.call('HINCRBY', account_key, 'unclaimed_boxes', -1)
        redis.call('HINCRBY', account_key, 'boxes_opened', 1)
        redis.call('HINCRBY', account_key, 'total_claimed', ARGV[1])
        local biggest = tonumber(redis.call('HGET', account_key, 'biggest_win') or '0')
        if prize > biggest then
            redis.call('HSET', account_key, 'biggest_win', ARGV[1])
        end

        redis.call('DECRBY', custody_key, ARGV[1])
        redis.call('INCRBY', user_balance_key, ARGV[1])

        redis.call('HINCRBY', stats_key, 'total_boxes_opened', 1)
        redis.call('HINCRBY', stats_key, 'total_rewards_distributed', ARGV[1])

        redis.call('SET', event_key, ARGV[2])
        redis.call('ZADD', events_index, ARGV[3], ARGV[4])
        return {1, ARGV[1]}
    """,
    "replace_prize_table": """
        redis.call('SET', KEYS[1], ARGV[1])
        redis.call('SET', KEYS[2], ARGV[2])
        redis.call('ZADD', KEYS[3], ARGV[3], ARGV[4])
        return {1, ''}
    """,
}

LEDGER_SCRIPTS = {
    "transfer": """
        local sender_key = KEYS[1]
        local recipient_key = KEYS[2]
        local entry_key = KEYS[3]
        local sent_index = KEYS[4]
        local received_index = KEYS[5]
        local amount = tonumber(ARGV[1])

        local balance = tonumber(redis.call('GET', sender_key) or '0')
        if balance < amount then
            return {3, tostring(balance)}
        end

        redis.call('DECRBY', sender_key, ARGV[1])
        redis.call('INCRBY', recipient_key, ARGV[1])
        redis.call('SET', entry_key, ARGV[2])
        redis.call('ZADD', sent_index, ARGV[3], ARGV[4])
        redis.call('ZADD', received_index, ARGV[3], ARGV[4])

        -- Optional reward event recorded with the transfer
        if #KEYS > 5 then
            redis.call('SET', KEYS[6], ARGV[5])
            redis.call('ZADD', KEYS[7], ARGV[6], ARGV[7])
        end
        return {1, tostring(balance - amount)}
    """,
    "credit": """
        local balance = redis.call('INCRBY', KEYS[1], ARGV[1])
        return {1, tostring(balance)}
    """,
    "seed_balance": """
        if not redis.call('SET', KEYS[1], '1', 'NX') then
            return {0, ''}
        end
        local balance = redis.call('INCRBY', KEYS[2], ARGV[1])
        return {1, tostring(balance)}
    """,
}

MERCHANT_SCRIPTS = {
    "register_merchant": """
        local merchant_key = KEYS[1]
        local counter_key = KEYS[2]
        local owner_index = KEYS[3]
        local token_index = KEYS[4]
        local score = ARGV[1]
        local member = ARGV[2]

        if redis.call('EXISTS', merchant_key) == 1 then
            return {0, ''}
        end

        local token_id = redis.call('INCR', counter_key) - 1
        redis.call('HSET', merchant_key, 'token_id', token_id, unpack(ARGV, 3))
        redis.call('ZADD', owner_index, score, member)
        redis.call('HSET', token_index, token_id, member)
        return {1, tostring(token_id)}
    """,
}

ALL_SCRIPTS = {**REWARD_SCRIPTS, **LEDGER_SCRIPTS, **MERCHANT_SCRIPTS}
