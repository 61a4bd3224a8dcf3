"""
Redis Lua scripts for refresh token storage.

Each script runs atomically on the server, so creation, the single-use
compare-and-set and bulk revocation cannot interleave with one another.
Time is always passed in by the caller as epoch seconds.
"""

# Store a new record unless its token value is already indexed.
# Returns the id that owns the token value (the existing one on collision).
CREATE_REFRESH_TOKEN_SCRIPT = """
local record_key = KEYS[1]
local value_key = KEYS[2]
local owner_key = KEYS[3]

local existing_id = redis.call('GET', value_key)
if existing_id then
    return existing_id
end

redis.call(
    'HSET', record_key,
    'id', ARGV[1],
    'token', ARGV[2],
    'owner_id', ARGV[3],
    'expires_at', ARGV[4],
    'revoked', ARGV[5],
    'created_at', ARGV[6],
    'updated_at', ARGV[7]
)
redis.call('SET', value_key, ARGV[1])
redis.call('SADD', owner_key, ARGV[1])

return ARGV[1]
"""

# Flip ``revoked`` only if it is still unset.
# Returns 1 when this call revoked the record, 0 when it was already revoked
# and -1 when the record does not exist.
REVOKE_IF_ACTIVE_SCRIPT = """
local record_key = KEYS[1]
local now = ARGV[1]

if redis.call('EXISTS', record_key) == 0 then
    return -1
end

if redis.call('HGET', record_key, 'revoked') == '1' then
    return 0
end

redis.call('HSET', record_key, 'revoked', '1', 'updated_at', now)
return 1
"""

# Revoke every record of one owner that is neither revoked nor expired.
# Ids whose record is gone are pruned from the owner set.
# Returns how many records were flipped.
REVOKE_ALL_BY_OWNER_SCRIPT = """
local owner_key = KEYS[1]
local now = ARGV[1]
local record_prefix = ARGV[2]
local now_value = tonumber(now)

local flipped = 0
for _, record_id in ipairs(redis.call('SMEMBERS', owner_key)) do
    local record_key = record_prefix .. record_id
    local fields = redis.call('HMGET', record_key, 'revoked', 'expires_at')
    if fields[2] then
        if fields[1] ~= '1' and tonumber(fields[2]) > now_value then
            redis.call('HSET', record_key, 'revoked', '1', 'updated_at', now)
            flipped = flipped + 1
        end
    else
        redis.call('SREM', owner_key, record_id)
    end
end

return flipped
"""
